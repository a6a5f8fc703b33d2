"""
KYC services deployer.

Manages the optional recognition services stack attached to a MyCloud
deployment and pushes configuration into a running deployment.
"""

__version__ = "0.1.0"
