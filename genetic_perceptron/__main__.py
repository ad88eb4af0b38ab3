"""
Command line driver for genetic perceptrons.

Usage:
    python -m genetic_perceptron train --topology 1 5 8 1 --lessons square -o square.bin
    python -m genetic_perceptron predict square.bin 0.3 0.7
    python -m genetic_perceptron inspect square.bin
"""

import argparse
import sys
from pathlib import Path

import numpy as np

from .core.errors import PerceptronError
from .core.network import Perceptron
from .core.rng import Seed
from .datasets.lessons import get_lessons, list_lessons
from .evolution.config import SelectorConfig
from .evolution.selector import GeneticSelector


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='genetic_perceptron',
        description='Train and run perceptrons evolved by a genetic selector'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    train = subparsers.add_parser('train', help='Evolve a network on a lesson set')
    train.add_argument(
        '--topology', type=int, nargs='+', default=None,
        help='Neurons per layer, input layer first (default: 1 5 8 1)'
    )
    train.add_argument(
        '--lessons', type=str, default='square', choices=sorted(list_lessons()),
        help='Lesson set to train on (default: square)'
    )
    train.add_argument(
        '--population', type=int, default=None,
        help='Population count, at least 10 (default: 20)'
    )
    train.add_argument(
        '--iterations', type=int, default=None,
        help='Number of generations, at least 10 (default: 1000)'
    )
    train.add_argument(
        '--noise-force', type=float, default=None,
        help='Magnitude bound of the initial noise (default: 1.0)'
    )
    train.add_argument(
        '--mut-force', type=float, default=None,
        help='Magnitude bound of a mutation (default: 1.0)'
    )
    train.add_argument(
        '--seed', type=int, default=None,
        help='Generator seed (default: 1)'
    )
    train.add_argument(
        '--config', type=str, default=None,
        help='JSON run configuration; command line options override it'
    )
    train.add_argument(
        '-o', '--output', type=str, default='perceptron.bin',
        help='Where to save the trained network (default: perceptron.bin)'
    )
    train.add_argument(
        '--history', type=str, default=None,
        help='Save the per-generation history as JSON'
    )
    train.add_argument(
        '--plot', type=str, default=None,
        help='Save a plot of the selection history (PNG)'
    )
    train.add_argument(
        '--report-every', type=int, default=100,
        help='Print progress every N generations (0 to disable, default: 100)'
    )

    predict = subparsers.add_parser('predict', help='Run a saved network')
    predict.add_argument('model', type=str, help='Saved network file')
    predict.add_argument(
        'inputs', type=float, nargs='+',
        help='Input signals; several input vectors may be given back to back'
    )

    inspect = subparsers.add_parser('inspect', help='Describe a saved network')
    inspect.add_argument('model', type=str, help='Saved network file')
    inspect.add_argument(
        '--weights', action='store_true',
        help='Also print the weight vector'
    )

    return parser.parse_args(argv)


def build_config(args) -> SelectorConfig:
    """Merge the optional JSON configuration with command line overrides."""
    data = SelectorConfig.load(Path(args.config)).to_dict() if args.config else {}
    overrides = {
        'topology': args.topology,
        'population_count': args.population,
        'iterations': args.iterations,
        'noise_force': args.noise_force,
        'mut_force': args.mut_force,
        'seed': args.seed,
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    return SelectorConfig.from_dict(data)


def train(args) -> int:
    config = build_config(args)
    lessons, lessons_count, in_width, out_width = get_lessons(args.lessons)
    if config.topology[0] != in_width or config.topology[-1] != out_width:
        raise ValueError(
            f"lesson set '{args.lessons}' needs {in_width} inputs and {out_width} outputs, "
            f"topology is {config.architecture_string}"
        )

    print("=" * 60)
    print("   GENETIC PERCEPTRON - Training")
    print("=" * 60)
    print(f"   Topology:       {config.architecture_string}")
    print(f"   Lessons:        {args.lessons} ({lessons_count})")
    print(f"   Population:     {config.population_count}")
    print(f"   Iterations:     {config.iterations}")
    print(f"   Noise force:    {config.noise_force}")
    print(f"   Mutation force: {config.mut_force}")
    print(f"   Seed:           {config.seed}")

    def progress_callback(generation, iterations, best_sigma):
        if args.report_every > 0 and (generation % args.report_every == 0 or generation == iterations):
            print(f"   Generation {generation:>6}/{iterations}  best sigma {best_sigma:.6f}")

    seed = Seed(config.seed)
    with Perceptron(config.topology) as network:
        network.noise(config.noise_force, seed)
        with GeneticSelector(network, config.population_count) as selector:
            print(f"   Pool size:      {selector.pool_count}")
            print(f"   Weights:        {selector.weights_count}\n")
            result = selector.run(
                network,
                lessons,
                lessons_count,
                iterations=config.iterations,
                noise_force=config.noise_force,
                mut_force=config.mut_force,
                seed=seed,
                progress_callback=progress_callback,
            )

        network.save(args.output)
        print(f"\n{result.summary()}")
        print(f"Saved network to {args.output}")

        if args.history:
            result.history.save(Path(args.history))
            print(f"Saved history to {args.history}")
        if args.plot:
            from .visualization.plots import plot_sigma_history, save_figure
            fig = plot_sigma_history(result.history, title=f"Perceptron {config.architecture_string}")
            save_figure(fig, Path(args.plot))
            print(f"Saved plot to {args.plot}")

    return 0


def predict(args) -> int:
    with Perceptron.load(args.model) as network:
        in_width = network.topology[0]
        if len(args.inputs) % in_width != 0:
            raise ValueError(
                f"network takes {in_width} inputs per vector, got {len(args.inputs)} values"
            )
        rows = np.array(args.inputs, dtype=np.float32).reshape(-1, in_width)
        outputs = network.execute_lessons(rows)
        for signals, result in zip(rows, outputs):
            ins = ' '.join(f"{value:.6f}" for value in signals)
            outs = ' '.join(f"{value:.6f}" for value in result)
            print(f"{ins} -> {outs}")
    return 0


def inspect(args) -> int:
    with Perceptron.load(args.model) as network:
        print(f"Topology:  {'-'.join(str(size) for size in network.topology)}")
        print(f"Layers:    {network.layers_count}")
        print(f"Weights:   {network.weights_count}")
        print(f"Inputs:    {np.array2string(network.get_inputs(), precision=6)}")
        print(f"Outputs:   {np.array2string(network.get_outputs(), precision=6)}")
        if args.weights:
            print(np.array2string(network.weights, precision=6, threshold=sys.maxsize))
    return 0


COMMANDS = {
    'train': train,
    'predict': predict,
    'inspect': inspect,
}


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (PerceptronError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
