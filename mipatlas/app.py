"""Mipmap atlas generator - command-line entry point."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from mipatlas.config_manager import ConfigManager
from mipatlas.device import open_device
from mipatlas.errors import InputResolutionError, MipAtlasError
from mipatlas.mipmapping import ImageJob, MipmapProcessor
from mipatlas.models import CONFIG_FILE, FilterMode, MipmapConfig

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mipatlas",
        description="Generate a mip chain for each input image and pack it, "
        "together with the source, into a single PNG atlas.",
    )
    parser.add_argument(
        "--input",
        "--i",
        dest="input",
        help="Comma-separated input image paths",
    )
    parser.add_argument(
        "--output",
        "--o",
        dest="output",
        help="Comma-separated output paths, matched to inputs by position "
        "(default: <input-name>_mipmap.png)",
    )
    parser.add_argument(
        "--mode",
        "--m",
        dest="mode",
        help="Filter: 1 = nearest, 2 = cubic, anything else = linear (default)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_FILE,
        help="JSON configuration file (default: ~/.mipatlas_config.json)",
    )
    parser.add_argument(
        "--gray",
        action="store_true",
        help="Also write a grayscale PGM of each atlas",
    )
    parser.add_argument(
        "--levels-dir",
        type=Path,
        help="Keep each mip chain and write its levels into this directory",
    )
    return parser


def split_paths(value: str) -> "list[str]":
    """Split a comma-separated path list, dropping empty entries."""
    return [part.strip() for part in value.split(",") if part.strip()]


def default_output_path(input_path: str | Path, suffix: str) -> Path:
    """``<input-name-without-extension><suffix>.png`` in the current directory."""
    return Path(f"{Path(input_path).stem}{suffix}.png")


def resolve_jobs(
    input_arg: Optional[str],
    output_arg: Optional[str],
    config: MipmapConfig,
) -> "list[ImageJob]":
    """Pair every input with its output path.

    Raises:
        InputResolutionError: If no input path can be resolved
    """
    if input_arg is None:
        inputs = [config.default_input] if config.default_input else []
    else:
        inputs = split_paths(input_arg)
    if not inputs:
        raise InputResolutionError("no input image path given")

    outputs = split_paths(output_arg) if output_arg else []

    jobs = []
    for i, input_path in enumerate(inputs):
        if i < len(outputs):
            output_path = Path(outputs[i])
        else:
            output_path = default_output_path(input_path, config.output_suffix)
        jobs.append(ImageJob(input_path=Path(input_path), output_path=output_path))
    return jobs


def resolve_filter(mode_arg: Optional[str], config: MipmapConfig) -> FilterMode:
    if mode_arg is None:
        return config.default_filter
    return FilterMode.from_mode_arg(mode_arg)


def main(argv: "list[str] | None" = None) -> int:
    """Run the generator over every resolved input. Returns the exit code."""
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config).load()

    try:
        jobs = resolve_jobs(args.input, args.output, config)
        filter_mode = resolve_filter(args.mode, config)
        print(f"Using {filter_mode.value} filtering.")

        with open_device(config) as context:
            print(f"Using device '{context.info.name}'.")
            processor = MipmapProcessor(context, config)
            processor.process_batch(
                jobs,
                filter_mode,
                write_gray=args.gray,
                levels_dir=args.levels_dir,
            )
    except MipAtlasError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
