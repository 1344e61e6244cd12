"""Entry point for the Telegram → Gmail relay bot"""

from mailbot.main import run

if __name__ == "__main__":
    run()
