"""In-memory customer directory for development and testing."""

from identity.customers.port import Customer, CustomerDirectory


class InMemoryCustomerDirectory(CustomerDirectory):
    def __init__(self, customers=None):
        self.customers: dict[str, Customer] = {}
        for customer in customers or []:
            self.add(customer)

    def add(self, customer: Customer | dict) -> Customer:
        if isinstance(customer, dict):
            customer = Customer.from_dict(customer)
        self.customers[customer.customer_id] = customer
        return customer

    def get(self, customer_id: str) -> Customer | None:
        if not customer_id:
            return None
        return self.customers.get(str(customer_id))

    def clear(self) -> None:
        self.customers.clear()
