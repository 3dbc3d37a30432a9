"""
Custom exceptions for pnode-monitor
"""


class PnodeMonitorException(Exception):
    """Base exception for pnode-monitor"""
    pass


class RpcError(PnodeMonitorException):
    """pRPC call failed or returned an unusable response"""

    def __init__(self, host: str, method: str, message: str):
        self.host = host
        self.method = method
        super().__init__(f"pRPC error for {host} calling {method}: {message}")


class NetworkError(PnodeMonitorException):
    """Network-related error"""

    def __init__(self, hostname: str, operation: str, message: str):
        self.hostname = hostname
        self.operation = operation
        super().__init__(f"Network error for {hostname} during {operation}: {message}")


class ValidationError(PnodeMonitorException):
    """Input validation error"""
    pass
