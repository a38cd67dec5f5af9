# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Allow running dbiprofile as a module: python -m dbiprofile
"""

from dbiprofile.cli import main

if __name__ == "__main__":
    main()
