#!/usr/bin/env python3
"""Generate a synthetic test clip for MediaSplit end-to-end runs.

Produces a video with a 440 Hz tone over a moving test pattern, long enough
to exercise every split mode (default 120 s):

  mediasplit split tests/fixtures/synthetic.mp4 --parts 2
  mediasplit split tests/fixtures/synthetic.mp4 --duration 30
"""

import subprocess
import sys
from pathlib import Path


def generate_test_video(output: Path, duration: float = 120.0) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)

    cmd = [
        "ffmpeg", "-y",
        "-f", "lavfi", "-i", f"testsrc2=s=320x240:r=30:d={duration}",
        "-f", "lavfi", "-i", f"sine=f=440:d={duration}",
        "-c:v", "libx264",
        # Keyframe every second so stream-copy cuts land close to the window
        "-g", "30",
        "-c:a", "aac",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/synthetic.mp4")
    dur = float(sys.argv[2]) if len(sys.argv) > 2 else 120.0
    generate_test_video(out, dur)
