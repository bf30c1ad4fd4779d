"""Manually drive the voice pipeline against real AWS and watsonx.ai services.

Usage:
    python scripts/run_pipeline.py recording-1700000000000-abcd1234.mp3
    python scripts/run_pipeline.py --text "I had a stressful day at work"
"""

import argparse
import asyncio
import os
import sys

# Add project root to path so we can import mindspace
sys.path.append(os.getcwd())

from mindspace.controllers.dependencies import get_llm_client, get_voice_pipeline


async def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("audio_key", nargs="?", help="Key (or s3:// URI) of an uploaded recording")
    parser.add_argument("--text", help="Skip transcription and answer this text")
    args = parser.parse_args()

    if not args.audio_key and not args.text:
        parser.print_usage()
        return 2

    pipeline = get_voice_pipeline()
    try:
        if args.text:
            result = await pipeline.run_text(args.text)
        else:
            result = await pipeline.run(args.audio_key)
    finally:
        await get_llm_client().close()

    print(f"\nrun:      {result.run_id}")
    print(f"success:  {result.success}")
    if not result.success:
        print(f"stage:    {result.failed_stage.value if result.failed_stage else '-'}")
        print(f"error:    {result.error_type}: {result.error}")
    print("\n--- Input ---")
    print(result.input_text or "")
    print("\n--- Reply ---")
    print(result.generated_text or "")
    print(f"\naudio:    {result.audio_file}")
    print(f"s3:       {result.audio_url}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
