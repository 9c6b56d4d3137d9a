"""
Documentação da API - Installment Transaction Engine.

Este arquivo contém informações gerais sobre a API para documentação Swagger.
"""

API_INFO = {
    "title": "Installment Transaction Engine",
    "version": "1.0.0",
    "description": (
        "API para parcelamento de transações financeiras.\n\n"
        "- Divide um valor total em N parcelas mensais.\n"
        "- Cria, consulta, regenera e remove grupos de parcelas como uma "
        "única entidade.\n"
        "- Agrupa transações antigas, sem ID de grupo, por comparação de "
        "campos.\n"
        "- Autenticação JWT."
    ),
    "contact": {"name": "Installment Engine", "url": "https://github.com/"},
    "license": {"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
}

TAGS = [
    {
        "name": "Parcelamentos",
        "description": (
            "Planejamento, criação, edição e remoção de grupos de parcelas"
        ),
    },
]
