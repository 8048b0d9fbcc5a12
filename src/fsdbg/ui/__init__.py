"""Command-line front end"""
