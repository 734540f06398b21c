"""
Student Job Marketplace
Backend where employers post part-time jobs and students apply to them.

Architecture:
- PostgreSQL: users, companies, jobs, applications, saved jobs
- MongoDB GridFS: uploaded resumes, avatars and company logos
"""

__version__ = "1.0.0"
