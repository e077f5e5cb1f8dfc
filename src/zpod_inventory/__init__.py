"""Inventory discovery for vCenter and NSX Manager endpoints of a zPod lab."""

__version__ = "0.1.0"
