"""HTTP blueprints for the Receipts web app."""
