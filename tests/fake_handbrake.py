"""Stand-in for HandBrakeCLI used by the tests.

Accepts the same --input/--output/--preset-import-file/--preset options and
behaves according to $FAKE_ENGINE_MODE:

    ok    print progress up to 100 %, write the output file, exit 0
    fail  write a partial output file, complain on stderr, exit 3
    hang  write a partial output file, report 50 %, then wait to be killed
"""
import argparse
import json
import os
import sys
import time


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--input", required=True)
    parser.add_argument("--output", required=True)
    parser.add_argument("--preset-import-file", required=True)
    parser.add_argument("--preset", required=True)
    args = parser.parse_args()

    log_path = os.environ.get("FAKE_ENGINE_LOG")
    if log_path:
        with open(log_path, "a", encoding="utf-8") as log:
            log.write(json.dumps(vars(args)) + "\n")

    mode = os.environ.get("FAKE_ENGINE_MODE", "ok")

    with open(args.output, "w", encoding="utf-8") as out:
        out.write("partial")

    if mode == "fail":
        sys.stderr.write("Invalid input: no video found\n")
        sys.stderr.flush()
        return 3

    if mode == "hang":
        sys.stdout.write("Encoding: task 1 of 1, 50.00 % (30.00 fps, avg 30.00 fps, ETA 00h00m10s)\n")
        sys.stdout.flush()
        while True:
            time.sleep(0.1)

    for pct in (0.0, 25.5, 50.0, 99.9, 100.0):
        sys.stdout.write(f"Encoding: task 1 of 1, {pct:.2f} % (30.00 fps, avg 30.00 fps, ETA 00h00m01s)\r")
        sys.stdout.flush()
    sys.stdout.write("\nEncode done!\n")
    with open(args.output, "w", encoding="utf-8") as out:
        out.write("complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
