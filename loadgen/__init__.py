"""Load generator for the social network benchmark's autoscaling tests"""

__version__ = "0.1.0"
