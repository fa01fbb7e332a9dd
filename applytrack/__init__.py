"""
ApplyTrack - Job application tracker with spreadsheet import and resume scoring.

A local tool that:
- Imports job applications from Google Sheets or CSV files
- Normalizes dates and statuses into a single interview table
- Scores resumes against job descriptions
"""

__version__ = "0.1.0"
__author__ = "ApplyTrack Project"
