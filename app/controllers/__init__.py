from .installment import installment_bp

all_routes = [installment_bp]
