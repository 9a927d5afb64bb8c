"""
Command-line entry point: train DQN and/or DRQN agents and plot the results.

Usage:
    python -m RL_tutorials.train --algo dqn --episodes 300
    python -m RL_tutorials.train --algo drqn --observability masked --plot drqn.png
    python -m RL_tutorials.train --algo both --observability masked --plot compare.png

`--algo both` trains a DQN and a DRQN on the same environment, which is the
experiment that shows why memory matters once the velocities are hidden.
"""

import argparse
import logging
from pathlib import Path

from RL_tutorials.environment import OBSERVABILITY_MODES, make_env
from RL_tutorials.plotting import plot_comparison, plot_training_curves
from RL_tutorials.training import evaluate, train_dqn, train_drqn

# Training configuration
NUM_EPISODES = 300
MAX_STEPS = 500  # CartPole-v1 truncates at 500 anyway


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Train DQN / DRQN agents on gymnasium environments.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--algo", choices=["dqn", "drqn", "both"], default="dqn")
    parser.add_argument("--env", dest="env_id", default="CartPole-v1", help="gymnasium environment id")
    parser.add_argument("--observability", choices=OBSERVABILITY_MODES, default="full")
    parser.add_argument("--episodes", type=int, default=NUM_EPISODES)
    parser.add_argument("--max-steps", type=int, default=MAX_STEPS)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--render-interval", type=int, default=10, help="episodes between progress lines")
    parser.add_argument("--save-interval", type=int, default=50, help="episodes between checkpoints")
    parser.add_argument(
        "--save-path",
        default=None,
        help="checkpoint path, e.g. checkpoints/dqn.pt (with --algo both, the "
             "algorithm name is appended to the file stem)",
    )
    parser.add_argument("--plot", default=None, help="write learning curves to this image file")
    parser.add_argument("--eval-episodes", type=int, default=0, help="greedy evaluation episodes after training")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def _save_path_for(save_path: str | None, algo: str, several: bool) -> str | None:
    if save_path is None or not several:
        return save_path
    path = Path(save_path)
    return str(path.with_name(f"{path.stem}_{algo}{path.suffix}"))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    algos = ["dqn", "drqn"] if args.algo == "both" else [args.algo]
    trainers = {"dqn": train_dqn, "drqn": train_drqn}
    histories = {}

    if args.save_path is not None:
        Path(args.save_path).parent.mkdir(parents=True, exist_ok=True)

    for algo in algos:
        agent, history = trainers[algo](
            env_id=args.env_id,
            num_episodes=args.episodes,
            max_steps=args.max_steps,
            observability=args.observability,
            render_interval=args.render_interval,
            save_interval=args.save_interval,
            save_path=_save_path_for(args.save_path, algo, len(algos) > 1),
            seed=args.seed,
        )
        histories[algo.upper()] = history

        if args.eval_episodes > 0:
            env = make_env(args.env_id, observability=args.observability, seed=args.seed)
            try:
                evaluate(agent, env, num_episodes=args.eval_episodes, max_steps=args.max_steps, seed=args.seed)
            finally:
                env.close()

    if args.plot is not None:
        title = f"{args.env_id} ({args.observability} observability)"
        if len(histories) > 1:
            plot_comparison(histories, title=title, save_path=args.plot)
        else:
            (history,) = histories.values()
            plot_training_curves(history, title=title, save_path=args.plot)


if __name__ == "__main__":
    main()
