import argparse
import os
import sys
import time

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from sessionscribe.clients import create_openai_client
from sessionscribe.config import load_config
from sessionscribe.transcriber import build_transcriber


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("audio_path", help="Path to audio file to transcribe.")
    parser.add_argument("--config", default="sessionscribe_config.yml", help="Config.")
    parser.add_argument(
        "--backend", choices=["openai", "local"], help="Override the configured backend."
    )
    args = parser.parse_args()

    config = load_config(args.config)
    if args.backend:
        config.transcription.backend = args.backend
    client = create_openai_client(config) if config.transcription.backend == "openai" else None
    transcriber = build_transcriber(config, client)

    with open(args.audio_path, "rb") as handle:
        audio = handle.read()

    started = time.time()
    result = transcriber.transcribe(audio, filename=os.path.basename(args.audio_path))
    elapsed = time.time() - started
    if result.success:
        print(f"Words: {len(result.text.split())}")
        print(result.text[:500])
    else:
        print(f"Failed ({result.failure.value}): {result.error}")
    print(f"Elapsed: {elapsed:.2f}s")
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
