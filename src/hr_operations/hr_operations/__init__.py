"""HR operations package.

Feature modules (companies, users, shifts, offdays, attendance, leaves) each
carry a model, a repository protocol with its MySQL implementation, a service
holding the business rules and a thin Flask controller.
"""
