"""
Brightsync - Push SIS course offerings into Brightspace

Authorizes against the LMS with the OAuth2 authorization-code flow, then
upserts course offerings (and the course templates and semesters they
depend on) into the LMS org structure.
"""

__version__ = "1.0.0"
__author__ = "Dale Chapman"
__license__ = "MIT"
