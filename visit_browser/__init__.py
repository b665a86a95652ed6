"""
SQLite store and Streamlit view for browsing a loaded visit schedule.
"""
