"""
CLI main entry point.

Delegates to the typer application in winpush.interface.cli.app.
"""


def main() -> int:
    """
    Main entry point for the WinPush CLI.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    # Import here so `import winpush.interface.cli` stays cheap
    from winpush.interface.cli.app import app
    app(prog_name="winpush")
    return 0
