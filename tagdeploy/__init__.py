"""
tagdeploy - publish a bundle to AWS Lambda and keep the deployment ledger in git tags.
"""

__version__ = "0.1.0"
