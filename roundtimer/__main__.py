"""Allow running RoundTimer as a module: python -m roundtimer."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .app import RoundTimerApp


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("RoundTimer")
    app.setOrganizationName("RoundTimer")

    window = RoundTimerApp()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
