"""Front ends that drive a ContactManager."""
