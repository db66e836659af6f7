"""Course management backend: auth, activity logs and notification worker."""
