import argparse
import sys

from client import VideoClientError, VideoJobClient, build_payload
from config import API_BASE_URL, ASPECT_RATIOS, PLATFORMS


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate a video from a topic and wait for it.")
    parser.add_argument("topic")
    parser.add_argument("--ratio", choices=ASPECT_RATIOS, default="16:9")
    parser.add_argument("--duration", type=int, default=60, help="Length in seconds")
    parser.add_argument("--no-speechify", action="store_true", help="Skip narration")
    parser.add_argument("--no-sora", action="store_true", help="Skip visuals")
    parser.add_argument("--no-veo", action="store_true", help="Skip composition")
    parser.add_argument("--platform", action="append", choices=PLATFORMS, default=[])
    parser.add_argument("--server", default=API_BASE_URL)
    args = parser.parse_args(argv)

    payload = build_payload(
        args.topic,
        ratio=args.ratio,
        duration=args.duration,
        speechify=not args.no_speechify,
        sora=not args.no_sora,
        veo=not args.no_veo,
        platforms=args.platform,
    )
    client = VideoJobClient(args.server, on_log=print)
    try:
        result = client.generate(payload)
    except VideoClientError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if not result.ok:
        return 1
    print(f"🎥 Video:     {result.snapshot['result_url']}")
    print(f"🖼  Thumbnail: {result.snapshot['thumbnail_url']}")
    print(f"💬 Caption:   {result.snapshot['caption']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
