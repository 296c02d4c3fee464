from autoglass.payments.paypal import PaymentGateway, PayPalClient

__all__ = ["PaymentGateway", "PayPalClient"]
