"""Allow ``python -m offline_agent``."""

from offline_agent.cli.main import main

if __name__ == "__main__":
    main()
