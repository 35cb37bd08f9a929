"""
Google Drive upload relay with pollable progress.
"""
