#!/usr/bin/env python3
"""
CLI interface for the capture engine.

Usage:
    python -m capture analyze -i frame.jpg
    python -m capture enhance -i photo.jpg --corners 10 10 400 12 410 600 5 590 -o out.png
    python -m capture enhance -i photo.jpg --guide 40 80 680 1200 -o out.png
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import cv2

from constants import LOG_LEVEL
from image_enhancement import EnhanceMode

from .engine import CaptureEngine
from .frames import PixelFormat
from .results import EnhancementOptions


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Document capture: frame analysis and enhancement',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Analyze a frame and print the JSON record
  python -m capture analyze -i frame.jpg

  # Feed the same frame several times to warm up the stability tracker
  python -m capture analyze -i frame.jpg --repeat 5

  # Rectify around explicit corners (TL, TR, BR, BL) and binarize
  python -m capture enhance -i photo.jpg --corners 10 10 400 12 410 600 5 590 --mode sauvola

  # Let the engine derive the source quadrilateral from a guide box
  python -m capture enhance -i photo.jpg --guide 40 80 680 1200
        """
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Analyze a frame')
    analyze.add_argument('-i', '--input', required=True, help='Input image')
    analyze.add_argument('--rotation', type=int, default=0, choices=[0, 90, 180, 270])
    analyze.add_argument('--crop', type=int, nargs=4, metavar=('X', 'Y', 'W', 'H'))
    analyze.add_argument('--repeat', type=int, default=1, help='Analyze the frame N times (default: 1)')

    enhance = subparsers.add_parser('enhance', help='Rectify and enhance a captured image')
    enhance.add_argument('-i', '--input', required=True, help='Input image')
    enhance.add_argument('-o', '--output', help='Output file (default: <input>_enhanced.png)')
    target = enhance.add_mutually_exclusive_group()
    target.add_argument('--corners', type=float, nargs=8, metavar='V',
                        help='x0 y0 x1 y1 x2 y2 x3 y3 (TL, TR, BR, BL)')
    target.add_argument('--guide', type=float, nargs=4, metavar=('LEFT', 'TOP', 'RIGHT', 'BOTTOM'),
                        help='Guide box; the image is analyzed first to measure skew')
    enhance.add_argument('--mode', default='none', choices=[m.name.lower() for m in EnhanceMode])
    enhance.add_argument('--crop-only', action='store_true', help='Crop to the corners instead of rectifying')
    enhance.add_argument('--sharpen', type=float, default=0.0, help='Sharpening strength (0 = off)')
    enhance.add_argument('--auto-enhance', action='store_true', help='CLAHE + brightness adjustment')
    enhance.add_argument('--size', type=int, nargs=2, default=(0, 0), metavar=('W', 'H'))

    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    return parser.parse_args(argv)


def run_analyze(engine: CaptureEngine, image, args) -> int:
    height, width = image.shape[:2]
    result = None
    for _ in range(max(1, args.repeat)):
        result = engine.analyze_frame(image, width, height, PixelFormat.BGR, args.rotation, args.crop)

    print(json.dumps(result.to_dict(), indent=2))
    return 0


def run_enhance(engine: CaptureEngine, image, args) -> int:
    height, width = image.shape[:2]

    options = EnhancementOptions(
        apply_crop=args.crop_only,
        apply_perspective_correction=not args.crop_only,
        apply_auto_enhance=args.auto_enhance,
        apply_sharpening=args.sharpen > 0,
        sharpening_strength=args.sharpen,
        enhance_mode=EnhanceMode[args.mode.upper()],
        output_width=args.size[0],
        output_height=args.size[1],
    )

    if args.guide:
        engine.analyze_frame(image, width, height, PixelFormat.BGR)
        result = engine.enhance_image_with_guide_frame(image, width, height, PixelFormat.BGR, args.guide, options)
    else:
        corners = args.corners
        if corners is None:
            analysis = engine.analyze_frame(image, width, height, PixelFormat.BGR)
            if not analysis.table_found:
                print("❌ Error: No document found, pass --corners or --guide")
                return 1
            corners = analysis.corners.reshape(-1).tolist()
        result = engine.enhance_image(image, width, height, PixelFormat.BGR, corners, options)

    with result:
        if not result.success:
            print(f"❌ Error: {result.error_message}")
            return 1

        output = args.output or str(Path(args.input).with_name(Path(args.input).stem + '_enhanced.png'))
        cv2.imwrite(output, result.image)
        print(f"✅ Done: {output} ({result.width}x{result.height}, {result.channels} ch)")

    return 0


def main(argv=None) -> int:
    """Main CLI function"""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )

    if not Path(args.input).exists():
        print(f"❌ Error: Input file not found: {args.input}")
        return 1

    image = cv2.imread(args.input)
    if image is None:
        print(f"❌ Error: Failed to load image: {args.input}")
        return 1

    engine = CaptureEngine()

    if args.command == 'analyze':
        return run_analyze(engine, image, args)
    return run_enhance(engine, image, args)


if __name__ == '__main__':
    sys.exit(main())
