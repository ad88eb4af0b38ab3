#!/usr/bin/env python3
"""
Quick start: evolve a 1-5-8-1 perceptron to square numbers in [0.1, 0.9].

Usage:
    python examples/quick_start.py [--iterations N] [--output PATH]
"""

import argparse
import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from genetic_perceptron import Perceptron, Seed, GeneticSelector
from genetic_perceptron.datasets import square_lessons


def parse_args():
    parser = argparse.ArgumentParser(description='Train a perceptron to square numbers')
    parser.add_argument(
        '--iterations', type=int, default=1000,
        help='Number of generations (default: 1000)'
    )
    parser.add_argument(
        '--output', type=str, default=None,
        help='Where to save the network (default: a temporary file)'
    )
    return parser.parse_args()


def main():
    args = parse_args()

    # Every randomised call draws from this seed; threads need their own.
    seed = Seed(1)

    network = Perceptron([1, 5, 8, 1])
    network.noise(1.0, seed)

    lessons = square_lessons()

    with GeneticSelector(network, 20) as selector:
        print(f"Training {network} with a pool of {selector.pool_count} candidates...")
        result = selector.run(
            network, lessons, 9,
            iterations=args.iterations,
            noise_force=1.0,
            mut_force=1.0,
            seed=seed,
        )
    print(result.summary())

    output = Path(args.output) if args.output else Path(tempfile.mkdtemp()) / 'perceptron.bin'
    network.save(output)
    print(f"Saved to {output}")

    with Perceptron.load(output) as loaded:
        inputs = loaded.get_inputs()
        outputs = loaded.get_outputs()
        for _ in range(10):
            inputs[0] = (seed.next_u32() % 100) / 100.0
            loaded.execute()
            print(f"in: {inputs[0]:f} out: {outputs[0]:f}")

    network.delete()


if __name__ == '__main__':
    main()
