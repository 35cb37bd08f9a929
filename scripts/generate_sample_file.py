#!/usr/bin/env python3
"""
Utility to generate a random binary file for exercising /upload by hand,
e.g. a 10 MB file to watch progress move while polling.
"""
import argparse
import os
import random
import sys

BLOCK_SIZE = 1024 * 1024


def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Generate a file of random bytes"
	)
	parser.add_argument(
		"-o", "--out",
		dest="output_path",
		help="Output file path",
		default="sample.bin"
	)
	parser.add_argument(
		"-s", "--size-mb",
		dest="size_mb",
		type=float,
		help="File size in megabytes",
		default=10
	)
	parser.add_argument(
		"--seed",
		dest="seed",
		type=int,
		help="Random seed for reproducibility",
		default=None
	)
	return parser.parse_args()


def validate_args(args: argparse.Namespace) -> None:
	if args.size_mb <= 0:
		raise ValueError("--size-mb must be > 0")


def main() -> int:
	args = parse_args()
	try:
		validate_args(args)
	except Exception as exc:
		print(f"Invalid arguments: {exc}", file=sys.stderr)
		return 2

	rng = random.Random(args.seed)
	remaining = int(args.size_mb * BLOCK_SIZE)

	output_dir = os.path.dirname(os.path.abspath(args.output_path)) or "."
	os.makedirs(output_dir, exist_ok=True)

	with open(args.output_path, "wb") as fh:
		while remaining > 0:
			n = min(BLOCK_SIZE, remaining)
			fh.write(rng.randbytes(n))
			remaining -= n

	print(f"File generated: {args.output_path} ({args.size_mb} MB)")
	return 0


if __name__ == "__main__":
	sys.exit(main())
