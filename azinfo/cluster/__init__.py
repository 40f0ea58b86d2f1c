"""Cluster node lookup and the background refresher."""
