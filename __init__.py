"""
Deployment Map application.

A FastAPI-powered map of disaster-response deployments, with live pin updates,
legend filters, zip code radius search and an admin pin editor.
"""
