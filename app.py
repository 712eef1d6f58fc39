#!/usr/bin/env python3
import sys
from gameshelf import create_app, default_settings_file, BIND, PORT, LOG_DIR
from gameshelf.log import setup_logger

def main() -> None:
    setup_logger(LOG_DIR)
    settings_file = sys.argv[1] if len(sys.argv) >= 2 else default_settings_file()
    app = create_app(settings_file)
    app.run(host=BIND, port=PORT, debug=False)

if __name__ == "__main__":
    main()
