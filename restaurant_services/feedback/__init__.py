"""
Feedback service: customer ratings stored in MongoDB.
"""
