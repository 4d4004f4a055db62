#!/usr/bin/env python3
"""Replay Cutter - Unified CLI Entry Point.

This module provides the command-line interface for finding games inside
arena replays. It routes commands to the replay_cutter package.

Usage:
    python main.py scan replay.mp4 -o games.json
    python main.py locate-minimap frame.png minimap.png --map Outlaw
    python main.py show-modes frame.png --mode 2 -o overlay.png

For detailed help on each command:
    python main.py scan --help
    python main.py locate-minimap --help
    python main.py show-modes --help
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))


def get_output_path(input_path: str, suffix: str, explicit_output: Optional[str] = None) -> str:
    """Get output file path with default to output/ directory with timestamp.

    Args:
        input_path: Path to input file.
        suffix: Suffix to append to input filename (e.g., '_games.json').
        explicit_output: Explicitly specified output path (takes priority).

    Returns:
        Output file path with timestamp (e.g., output/replay_games_20250111_143052.json).
    """
    if explicit_output:
        return explicit_output

    output_dir = Path('output')
    output_dir.mkdir(exist_ok=True)

    from datetime import datetime
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    input_stem = Path(input_path).stem

    # "_games.json" becomes "_games_20250111_143052.json"
    suffix_parts = suffix.rsplit('.', 1)
    if len(suffix_parts) == 2:
        suffix_with_timestamp = f"{suffix_parts[0]}_{timestamp}.{suffix_parts[1]}"
    else:
        suffix_with_timestamp = f"{suffix}_{timestamp}"

    return str(output_dir / f"{input_stem}{suffix_with_timestamp}")


def ensure_output_dir(output_path: str) -> None:
    """Ensure output directory exists for the given path.

    Args:
        output_path: Full path to output file.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)


def check_output_file_exists(output_path: str) -> bool:
    """Check if output file exists and prompt user for action.

    Args:
        output_path: Path to output file.

    Returns:
        True if should proceed with writing.

    Raises:
        SystemExit: If user chooses to quit or use existing file.
    """
    if not Path(output_path).exists():
        return True

    print(f"\n⚠️  Output file already exists: {output_path}")
    print("\nWhat would you like to do?")
    print("  [U] Use existing file (skip processing)")
    print("  [O] Overwrite (continue processing)")
    print("  [Q] Quit (exit without processing)")

    while True:
        choice = input("\nChoice (U/O/Q): ").strip().upper()

        if choice == 'U':
            print(f"\n✓ Using existing file: {output_path}")
            print("Skipping processing.")
            raise SystemExit(0)
        elif choice == 'O':
            print(f"\n⚠️  Will overwrite: {output_path}")
            return True
        elif choice == 'Q':
            print("\n✓ Exiting without processing.")
            raise SystemExit(0)
        else:
            print("Invalid choice. Please enter U, O, or Q.")


def load_rgb_image(path: str):
    """Read an image file as an RGB array.

    Raises:
        ValueError: If the image cannot be read.
    """
    import cv2

    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Could not read image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the replay cutter.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        description='Replay Cutter - Find games inside arena replays',
        epilog='For detailed help: python main.py <command> --help'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='Available Commands',
        description='Select a command to run',
        help='Use <command> --help for more information'
    )

    # =========================================================================
    # SCAN COMMAND
    # =========================================================================
    scan_parser = subparsers.add_parser(
        'scan',
        help='Find game boundaries, teams, scores and maps in a replay',
        description='Scan a replay backward and list every game found (Tesseract OCR)'
    )
    scan_parser.add_argument(
        'video',
        help='Path to video file'
    )
    scan_parser.add_argument(
        '-o', '--output',
        help='Output file path (.json or .csv, default: output/{video_stem}_games_YYYYMMDD_HHMMSS.json)'
    )
    scan_parser.add_argument(
        '--step',
        type=float,
        help='Seconds between scanned positions (default: SCAN_STEP from .env or 2.0)'
    )
    scan_parser.add_argument(
        '--match-minutes',
        type=int,
        help='Match length used by the timer jump (default: MATCH_MINUTES from .env or 10)'
    )
    scan_parser.add_argument(
        '--debug-dir',
        help='Save every OCR crop and filtered variant to this directory'
    )
    scan_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print detailed progress information'
    )

    # =========================================================================
    # MINIMAP COMMAND
    # =========================================================================
    minimap_parser = subparsers.add_parser(
        'locate-minimap',
        help='Locate a minimap thumbnail inside a frame',
        description='Template match a minimap image inside a frame and refine its crop box'
    )
    minimap_parser.add_argument(
        'image',
        help='Frame image to search'
    )
    minimap_parser.add_argument(
        'template',
        help='Minimap thumbnail to look for'
    )
    minimap_parser.add_argument(
        '--map',
        help='Map name, applies its minimap margins to the detected border box'
    )
    minimap_parser.add_argument(
        '-o', '--output',
        help='Output JSON file (default: print only)'
    )
    minimap_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print detailed information'
    )

    # =========================================================================
    # MODE OVERLAY COMMAND
    # =========================================================================
    modes_parser = subparsers.add_parser(
        'show-modes',
        help='Draw a HUD mode template on a frame for calibration',
        description='Draw the OCR boxes and sample points of a HUD mode on a frame'
    )
    modes_parser.add_argument(
        'image',
        help='Reference frame (1920x1080)'
    )
    modes_parser.add_argument(
        '--mode',
        type=int,
        default=1,
        help='HUD mode to draw (default: 1)'
    )
    modes_parser.add_argument(
        '-o', '--output',
        help='Output image path (default: output/{image_stem}_mode{N}_YYYYMMDD_HHMMSS.png)'
    )
    modes_parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print every drawn region'
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # =========================================================================
    # ROUTE TO APPROPRIATE COMMAND HANDLER
    # =========================================================================

    try:
        if args.command == 'scan':
            return cmd_scan(args)
        elif args.command == 'locate-minimap':
            return cmd_locate_minimap(args)
        elif args.command == 'show-modes':
            return cmd_show_modes(args)
        else:
            print(f"Error: Unknown command '{args.command}'")
            return 1

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def cmd_scan(args: argparse.Namespace) -> int:
    """Execute replay scan command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 if no game was found).
    """
    from replay_cutter.config import ScanSettings
    from replay_cutter.game_detection import scan_video, save_games

    output_path = get_output_path(args.video, '_games.json', args.output)
    ensure_output_dir(output_path)
    check_output_file_exists(output_path)

    settings = ScanSettings.from_env()
    if args.step is not None:
        if args.step <= 0:
            print("Error: --step must be greater than 0", file=sys.stderr)
            return 1
        settings.step = args.step
    if args.match_minutes is not None:
        settings.match_minutes = args.match_minutes

    if args.verbose:
        print("=" * 70)
        print("REPLAY SCAN (Tesseract OCR)")
        print("=" * 70)
        print(f"Video: {args.video}")
        print(f"Output: {output_path}")
        print(f"Step: {settings.step}s")
        print(f"Match length: {settings.match_minutes} min")
        print("=" * 70)

    def show_progress(percent: int, games_found: int):
        print(f"\r  Progress: {percent:3d}% ({games_found} games found)", end='', flush=True)

    result = scan_video(
        video_path=args.video,
        settings=settings,
        debug_dir=args.debug_dir,
        on_progress=show_progress if args.verbose else None
    )

    if args.verbose:
        print()

    if result.no_games_found:
        print("Error: No games found in video", file=sys.stderr)
        return 1

    save_games(result.games, output_path)

    print(f"\n✓ Scan complete in {result.elapsed:.1f}s")
    print(f"  Found {len(result.games)} games")
    print(f"  Results saved to: {output_path}")

    if args.verbose:
        print("\nGames:")
        for i, game in enumerate(result.games, 1):
            print(f"  {i}. {game.readable_start or '?'} - {game.readable_end}  "
                  f"{game.map or 'unknown map'}  "
                  f"{game.orange_team.name or '?'} {game.orange_team.score} - "
                  f"{game.blue_team.score} {game.blue_team.name or '?'}")

    return 0


def cmd_locate_minimap(args: argparse.Namespace) -> int:
    """Execute minimap location command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    from replay_cutter.hud_extraction import get_map
    from replay_cutter.utils import locate, detect_minimap_bounds, apply_map_margins
    import json

    frame = load_rgb_image(args.image)
    template = load_rgb_image(args.template)

    if args.verbose:
        print(f"Frame: {frame.shape[1]}x{frame.shape[0]}, template: {template.shape[1]}x{template.shape[0]}")

    result = locate(frame, template)
    bounds = detect_minimap_bounds(frame)

    if args.map:
        game_map = get_map(args.map)
        if game_map is None:
            print(f"Error: Unknown map '{args.map}'", file=sys.stderr)
            return 1
        bounds = apply_map_margins(bounds, game_map.margins)

    output_data = {
        'image': args.image,
        'template': args.template,
        'position': list(result.position),
        'size': list(result.size),
        'confidence': result.confidence,
        'minimap_box': list(bounds),
        'map': args.map
    }

    print(f"✓ Best match at {result.position} (confidence {result.confidence:.3f})")
    print(f"  Minimap box: {bounds}")

    if args.output:
        ensure_output_dir(args.output)
        with open(args.output, 'w') as f:
            json.dump(output_data, f, indent=2)
        print(f"  Results saved to: {args.output}")

    return 0


def cmd_show_modes(args: argparse.Namespace) -> int:
    """Execute mode overlay command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    from replay_cutter.hud_extraction.modes import draw_mode_overlay, get_mode_regions
    import cv2

    output_path = get_output_path(args.image, f'_mode{args.mode}.png', args.output)
    ensure_output_dir(output_path)

    frame = load_rgb_image(args.image)
    overlay = draw_mode_overlay(frame, args.mode)

    if args.verbose:
        for name, box in get_mode_regions(args.mode).items():
            print(f"  {name}: {tuple(box)}")

    cv2.imwrite(output_path, cv2.cvtColor(overlay, cv2.COLOR_RGB2BGR))

    print(f"✓ Mode {args.mode} overlay saved to: {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
