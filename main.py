import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from blame_session import create_session
from blame_window import BlameWindow
from git_manager import StartupError
from settings import settings


def main(argv=None):
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print("file path is a required argument", file=sys.stderr)
        return 1
    file_path = argv[1]

    app = QApplication.instance() or QApplication(argv[:1])
    try:
        session = create_session(
            file_path, config=settings.view_config(), status_timeout_ms=settings.get_status_timeout()
        )
    except StartupError as e:
        logging.error("startup failed: %s", e)
        print(e, file=sys.stderr)
        return 1

    window = BlameWindow(session)
    window.show()
    window.activateWindow()
    window.raise_()

    session.start()
    return app.exec()


def setup_logging():
    # 根据环境变量设置日志级别
    log_level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO

    # 配置日志
    logging.basicConfig(
        level=log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
    )
    # add file handler
    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler("blamewalk.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s")
        )
        logging.getLogger().addHandler(file_handler)


def run():
    setup_logging()
    sys.exit(main())


if __name__ == "__main__":
    run()
