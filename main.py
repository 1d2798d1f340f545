"""Refresko 2026 - morphing particle canvas."""

import logging
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(__file__))

from particle_canvas.app import App


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = App(width=1280, height=720)
    app.run()


if __name__ == "__main__":
    main()
