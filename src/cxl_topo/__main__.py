#!/usr/bin/env python3
"""
Entry point for running cxl_topo as a module
This allows running: python -m cxl_topo
"""

from cxl_topo.cli import app

if __name__ == "__main__":
    app()
