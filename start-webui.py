#!/usr/bin/env python3
"""Contact Book — Browser UI.  Run with:  python3 start-webui.py"""
import sys
import os

script_dir = os.path.dirname(os.path.abspath(__file__))
src_dir    = os.path.join(script_dir, "src")

sys.path.insert(0, src_dir)
os.chdir(script_dir)

from contact_book.cli import app
app(["serve"])
