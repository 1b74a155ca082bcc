# -*- coding: utf-8 -*-

from tracebuild.cli import run

if __name__ == "__main__":
    run()
