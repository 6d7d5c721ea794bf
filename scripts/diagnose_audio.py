import argparse
import io
import os
import sys
import time
import wave

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from sessionscribe.errors import DeviceError
from sessionscribe.recorder import AudioCapture, list_input_devices


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--device", help="Device name substring.")
    parser.add_argument("--seconds", type=float, default=5.0, help="Test duration.")
    parser.add_argument("--rate", type=int, default=16000, help="Sample rate.")
    parser.add_argument("--channels", type=int, default=1, help="Channels.")
    parser.add_argument("--out", help="Write the captured WAV here.")
    args = parser.parse_args()

    for device in list_input_devices():
        print(f"[{device.get('index')}] {device.get('name')} (inputs: {device.get('max_input_channels')})")

    capture = AudioCapture(
        sample_rate_hz=args.rate,
        channels=args.channels,
        device_name=args.device,
    )
    try:
        capture.start()
    except DeviceError as exc:
        print(f"Capture failed: {exc}")
        return 1

    print(f"Recording {args.seconds:.1f}s...")
    time.sleep(args.seconds)
    result = capture.stop()

    with wave.open(io.BytesIO(result.audio), "rb") as handle:
        frames = handle.readframes(handle.getnframes())
    samples = np.frombuffer(frames, dtype=np.int16).astype(np.float32) / 32768.0
    rms = float(np.sqrt(np.mean(samples**2))) if samples.size else 0.0
    print(f"Elapsed counter: {result.duration_seconds}s")
    print(f"Samples: {samples.size}")
    print(f"RMS level: {rms:.4f}")
    if rms < 0.001:
        print("Warning: signal is near silent; check the microphone and its permissions.")

    if args.out:
        with open(args.out, "wb") as handle:
            handle.write(result.audio)
        print(f"Wrote {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
