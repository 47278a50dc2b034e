"""
MedCare Backend: Services Layer
=================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Each service is a stateless class with a module-level instance. Methods
       take the request's AsyncSession as their first argument.

Service Inventory:
    - AuthService:          JWT issue and verification
    - UserService:          Profiles and roles
    - CampService:          Camp CRUD, listing, aggregate reconciliation
    - RegistrationService:  Join, rate, cancel, status workflows
    - PaymentGateway (abstract): Interface for payment providers
    - StripeGateway:        Concrete gateway with retry and circuit breaker
    - PaymentService:       Payment intents and payment records
"""
