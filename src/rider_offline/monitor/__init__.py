"""Monitor module for network reachability."""

from rider_offline.monitor.connectivity import ConnectivityMonitor, HttpConnectivityProbe

__all__ = ["ConnectivityMonitor", "HttpConnectivityProbe"]
