from __future__ import annotations
import argparse, json
from .engine import Engine
from .responses import build_payload

def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Spirit animal matcher CLI (no payment gate)")
    p.add_argument("--data", default=None, help="Path to animals.json (default: packaged catalog)")
    p.add_argument("--q", default=None, help="Single name to match once")
    p.add_argument("--repl", action="store_true", help="Interactive loop after load")
    p.add_argument("--json", action="store_true", help="Emit the API JSON payload")
    p.add_argument("--verbose", action="store_true")

    args = p.parse_args(argv)

    eng = Engine()
    try:
        eng.load(args.data, verbose=args.verbose)

        def run_query(name: str):
            res = eng.match(name)
            if args.json:
                print(json.dumps(build_payload(res, eng.total_animals), ensure_ascii=False, indent=2))
                return
            print(f"{res.normalized_name} -> {res.selected.name}: {res.selected.description}")
            print(f"   distance={res.min_distance}  ties={res.tie_count}/{eng.total_animals}")

        if args.q is not None:
            run_query(args.q)

        if args.repl:
            print("Type a name (empty line to exit).")
            while True:
                try:
                    q = input("> ").strip()
                except (EOFError, KeyboardInterrupt):
                    break
                if not q:
                    break
                run_query(q)

        return 0
    finally:
        eng.shutdown()

if __name__ == "__main__":
    raise SystemExit(main())
