from flask import Blueprint

installment_bp = Blueprint("installment", __name__, url_prefix="/installments")
