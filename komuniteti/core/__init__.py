"""Core building blocks: exceptions, logging and concurrency guards."""
