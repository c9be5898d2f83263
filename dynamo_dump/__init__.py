"""
dynamo_dump - Back up and restore DynamoDB tables to and from JSON files.
"""

__version__ = "0.1.0"
