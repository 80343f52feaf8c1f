"""
TaskFlow Assistant — Entry Point.

Single entry point: `python main.py` starts a terminal chat with the
assistant over the configured SQLite store. Page navigation is printed
instead of rendered.
"""

from taskflow.config import configure_logging

configure_logging()

from taskflow.app import TaskFlowApp


class ConsoleNavigator:
    """Navigator that reports route changes on stdout."""

    def navigate(self, route: str) -> None:
        print(f"[navigate → {route}]")


def main() -> None:
    app = TaskFlowApp(navigator=ConsoleNavigator())
    bot = app.config.BOT_NAME
    print(f"{bot}: {app.session.messages[-1].text}")
    try:
        while True:
            try:
                line = input("> ")
            except (EOFError, KeyboardInterrupt):
                break
            if line.strip().lower() in ("quit", "exit"):
                break
            reply = app.session.submit(line)
            print(f"{bot}: {reply.text}")
    finally:
        app.close()


if __name__ == "__main__":
    main()
