#!/usr/bin/env python3
"""
Spaces Uploader

Run this script to upload a file to an S3-compatible space as a multipart
upload.

Usage:
    python run.py upload big.iso                  # Upload as "big.iso"
    python run.py upload big.iso backups/big.iso  # Upload under a custom key
    python run.py upload big.iso --cleanup        # Abort stale uploads first
    python run.py cleanup                         # Only abort stale uploads
    python run.py download backups/big.iso out.iso
    python run.py -c custom.json -j result.json upload big.iso
"""

import sys
from spaces_uploader.cli import main

if __name__ == "__main__":
    sys.exit(main())
