#!/usr/bin/env python3
"""
CLI Script: Run Workflow
========================

Runs a story through the production stages against the configured
generation services: script analysis, scene breakdown, scene images,
narration and captions.

Usage:
    python scripts/run_workflow.py story.txt
    python scripts/run_workflow.py story.txt --genre comedy --images 2 --voice Matthew
    echo "Once upon a time..." | python scripts/run_workflow.py - --skip-audio
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add the repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storyflow import GenerationClient, ProductionSession, Stage
from storyflow.core.config import Config
from storyflow.core.exceptions import StoryflowError
from storyflow.models.scene import Genre, SceneStyle, Tone, Pacing
from storyflow.models.voices import AudioEngine
from storyflow.utils.logging import configure_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a story through the production workflow",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s story.txt
  %(prog)s story.txt --genre thriller --tone dark --images 3
  %(prog)s story.txt --engine standard --voice Matthew --captions out.srt
        """,
    )

    parser.add_argument(
        "story",
        help="Path to the story text file, or - to read stdin",
    )

    # Scene preferences
    parser.add_argument("--genre", choices=[g.value for g in Genre], default="drama")
    parser.add_argument("--style", choices=[s.value for s in SceneStyle], default="realistic")
    parser.add_argument("--tone", choices=[t.value for t in Tone], default="neutral")
    parser.add_argument("--pacing", choices=[p.value for p in Pacing], default="moderate")
    parser.add_argument(
        "--images",
        type=int,
        default=1,
        help="Images to generate per scene (0-3, default: 1)",
    )

    # Audio
    parser.add_argument(
        "--engine",
        choices=[e.value for e in AudioEngine],
        help="Speech engine (default: from config)",
    )
    parser.add_argument("--language", help="Language code, e.g. en-GB")
    parser.add_argument("--voice", help="Voice ID, e.g. Joanna")
    parser.add_argument(
        "--skip-audio",
        action="store_true",
        help="Do not synthesize narration",
    )

    # Output
    parser.add_argument(
        "--captions",
        help="Write captions for the story to this file (.srt or .vtt)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full session snapshot as JSON",
    )

    # Config
    parser.add_argument(
        "--config",
        help="Path to config file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def read_story(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def report(label: str, result) -> bool:
    """Print an operation outcome. Returns True on success."""
    if result.ok:
        return True
    message = result.failure.message if result.failure else result.status.value
    print(f"  {label}: {result.status.value} - {message}")
    return False


async def main():
    """Main CLI entry point."""
    args = parse_args()

    if not 0 <= args.images <= 3:
        print("Error: --images must be between 0 and 3")
        sys.exit(1)

    try:
        config = Config.load(args.config)
        story = read_story(args.story)
    except (StoryflowError, OSError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    configure_logging(config.logging, verbose=args.verbose)

    print("=" * 50)
    print("Storyflow Workflow")
    print("=" * 50)

    session = ProductionSession(GenerationClient.from_config(config), config=config)

    try:
        async with session:
            # Script
            print(f"\n[{Stage.SCRIPT.title}] Analyzing {len(story)} characters")
            result = await session.analyze_script(story)
            if not report("Script analysis", result):
                sys.exit(1)
            analysis = result.value
            print(f"  Title: {analysis.title}")
            print(f"  Characters: {', '.join(c.name for c in analysis.characters) or '-'}")
            session.advance()

            # Scenes
            print(f"\n[{Stage.SCENES.title}] Generating scenes")
            prefs = session.update_scene_preferences(
                genre=args.genre,
                style=args.style,
                tone=args.tone,
                pacing=args.pacing,
            )
            report("Scene preferences", prefs)
            result = await session.generate_scenes()
            if not report("Scene generation", result):
                sys.exit(1)
            print(f"  Scenes: {len(result.value)}")

            # One request per scene at a time; scenes run concurrently
            scene_count = len(session.store.scenes)
            for _ in range(args.images):
                image_results = await asyncio.gather(
                    *(session.generate_scene_image(index) for index in range(scene_count))
                )
                for index, image_result in enumerate(image_results):
                    report(f"Scene {index + 1} image", image_result)
            for index in range(scene_count):
                print(f"  Scene {index + 1}: {session.store.scene_image_count(index)} image(s)")
            session.advance()

            # Audio
            if not args.skip_audio:
                print(f"\n[{Stage.AUDIO.title}] Synthesizing narration")
                if args.engine or args.language or args.voice:
                    report("Audio preferences", session.update_audio_preferences(
                        engine=args.engine,
                        language_code=args.language,
                        voice_id=args.voice,
                    ))
                result = await session.synthesize_audio()
                if report("Audio synthesis", result):
                    print(f"  Audio URL: {result.value.url}")
            session.advance()

            # Captions
            print(f"\n[{Stage.CAPTIONS.title}] Building captions")
            if args.captions:
                if args.captions.lower().endswith(".vtt"):
                    session.update_captions("format", type="VTT")
                Path(args.captions).write_text(session.render_captions(), encoding="utf-8")
                print(f"  Captions saved: {args.captions}")
            session.advance()

            print("\n" + "-" * 50)
            summary = session.project_summary()
            print(f"Project: {summary['title']}")
            print(f"Stage: {session.current_stage.title}")
            print(f"Scenes: {summary['scene_count']}, images: {summary['image_count']}")

            if args.json:
                print(json.dumps(session.to_dict(), indent=2, default=str))

            print("=" * 50)

    except KeyboardInterrupt:
        print("\nCancelled")
        sys.exit(130)


if __name__ == "__main__":
    asyncio.run(main())
