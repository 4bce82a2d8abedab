"""NotifyHub - device registration and push notification delivery."""
