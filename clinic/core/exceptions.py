class StorageError(Exception):
    def __init__(self, operation: str, details: dict = None):
        self.operation = operation
        self.details = details or {}
        super().__init__(f"Storage failure during {operation}")
