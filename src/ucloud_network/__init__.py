"""Lifecycle handlers for UCloud VPC and subnet resources."""

__version__ = "0.1.0"
