from __future__ import annotations

import sys
import time

from arena.config import AppConfig
from arena.di_container import build_container
from arena.domain.backend import BackendState
from arena.domain.errors import ConfigurationError, TransportError
from arena.utils.args import parse_args
from arena.utils.env import load_dotenv
from arena.utils.logger import Logger


def _print_state(name: str, state: BackendState) -> None:
    status = f" ({state.status.value})" if state.error is None else f" ({state.error})"
    print(f"[{name}]{status} {state.transcription}", flush=True)


def _print_summary(states: dict[str, BackendState]) -> None:
    print()
    print(f"{'backend':<12}{'requests':>10}{'avg latency':>14}{'audio s':>10}{'avg KB':>9}")
    for name, state in states.items():
        print(
            f"{name:<12}{state.request_count:>10}{state.average_latency:>13.2f}s"
            f"{state.total_audio_seconds:>10.1f}{state.average_request_size_kb:>9.1f}"
        )
    for name, state in states.items():
        print(f"\n--- {name} ---\n{state.transcription.strip()}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    if args.list_devices:
        from arena.infrastructure.audio.microphone import list_input_devices

        print("\n".join(list_input_devices()))
        return 0

    load_dotenv(args.env_file)
    logger = Logger(on_emit=lambda line: print(line, file=sys.stderr))

    try:
        selected = args.backends.split(",") if args.backends else None
        config = AppConfig.from_env(selected)
        container = build_container(config, logger=logger)
        orchestrator = container.orchestrator
        orchestrator.on_state_changed = _print_state

        orchestrator.configure(config.backends)
        if not orchestrator.backends:
            print("Config error: no backend could be started.", file=sys.stderr)
            return 2

        orchestrator.start()
        print("Recording. Press Ctrl-C to stop.", file=sys.stderr)
        started_at = time.monotonic()
        try:
            while args.duration is None or time.monotonic() - started_at < args.duration:
                time.sleep(0.1)
        except KeyboardInterrupt:
            pass
        finally:
            orchestrator.stop()

        orchestrator.wait_for_updates()
        _print_summary(orchestrator.states())
        orchestrator.close()
        return 0
    except ValueError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2
    except ConfigurationError as exc:
        print(f"Auth/config error: {exc}", file=sys.stderr)
        return 3
    except TransportError as exc:
        print(f"Audio/connection error: {exc}", file=sys.stderr)
        return 5
    finally:
        if args.save_log:
            path = logger.save()
            print(f"Log saved to {path}", file=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
