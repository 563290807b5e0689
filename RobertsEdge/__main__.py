"""
RobertsEdge/__main__.py
Entry point for the edge detection CLI.
"""
import sys


def _configure_stdio_safely() -> None:
    """Avoid crashes when stdout/stderr cannot encode some log characters."""
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            try:
                stream.reconfigure(errors="backslashreplace", line_buffering=True, write_through=True)
            except (OSError, ValueError):
                pass


def main() -> None:
    _configure_stdio_safely()

    from .cli.edge_cli import EdgeCLI
    cli = EdgeCLI()

    try:
        cli.run()
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(1)
    except Exception as e:
        print(f"Execution failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
