import argparse, json, sys

from chainlens.core.config import Settings


def report(settings: Settings) -> bool:
    ok = True
    for name in ("OPENAI_API_KEY", "NODIT_API_KEY"):
        is_set = bool(getattr(settings, name))
        ok = ok and is_set
        print(f"  {name}: {'SET' if is_set else 'NOT SET'}")
    print(f"  LLM_MODEL: {settings.LLM_MODEL}")
    print(f"  NARRATOR_MODE: {settings.NARRATOR_MODE}")
    return ok


def run_message(message: str, session_id: str) -> int:
    # imported late so a broken key setup still gets the report above
    from chainlens.deps import get_chat_pipeline
    result = get_chat_pipeline().process(message, session_id)
    if result.error is not None:
        print(f"[ERROR] {result.error.kind.value}: {result.error.message}", file=sys.stderr)
        return 1
    print(json.dumps(result.data.model_dump(by_alias=True, mode="json"), indent=2))
    return 0


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Check API keys and optionally run one chat message.")
    ap.add_argument("--message", help="chat message to run through the pipeline")
    ap.add_argument("--session", default="check-env", help="session id to echo back")
    args = ap.parse_args(argv)

    print("Environment:")
    keys_ok = report(Settings())
    if args.message:
        rc = run_message(args.message, args.session)
        if rc:
            return rc
    return 0 if keys_ok else 2


if __name__ == "__main__":
    sys.exit(main())
