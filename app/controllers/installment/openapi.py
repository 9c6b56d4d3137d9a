from __future__ import annotations

TAG_INSTALLMENTS = "Parcelamentos"
ERROR_TOKEN_INVALIDO = "Token inválido"
ERROR_INTERNO = "Erro interno"
ERROR_VALIDACAO = "Erro de validação"
ERROR_GRUPO_NAO_ENCONTRADO = "Grupo de parcelas não encontrado"
ERROR_TRANSACAO_NAO_ENCONTRADA = "Transação não encontrada"

_SECURITY = [{"BearerAuth": []}]

GROUP_ID_PARAM = {
    "group_id": {
        "in": "path",
        "description": "ID do grupo de parcelas",
        "type": "string",
        "required": True,
    }
}

TRANSACTION_ID_PARAM = {
    "transaction_id": {
        "in": "path",
        "description": "ID de qualquer parcela do grupo",
        "type": "string",
        "required": True,
    }
}

INSTALLMENT_PREVIEW_DOC = {
    "description": (
        "Calcula o plano de parcelas (valores e datas) sem persistir nada."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "responses": {
        200: {"description": "Plano calculado"},
        400: {"description": ERROR_VALIDACAO},
        401: {"description": ERROR_TOKEN_INVALIDO},
    },
}

INSTALLMENT_CREATE_DOC = {
    "description": (
        "Cria um parcelamento. Com 'installment_count' igual a 1 é criada uma "
        "transação simples, sem grupo."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "responses": {
        201: {"description": "Parcelamento criado"},
        400: {"description": ERROR_VALIDACAO},
        401: {"description": ERROR_TOKEN_INVALIDO},
        500: {"description": ERROR_INTERNO},
    },
}

INSTALLMENT_GROUP_GET_DOC = {
    "description": "Retorna as parcelas de um grupo e o estado do grupo.",
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": GROUP_ID_PARAM,
    "responses": {
        200: {"description": "Grupo encontrado"},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_GRUPO_NAO_ENCONTRADO},
    },
}

INSTALLMENT_GROUP_UPDATE_DOC = {
    "description": (
        "Regenera o grupo inteiro a partir do rascunho. As parcelas antigas "
        "são removidas e um novo grupo, com novo ID, é criado."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": GROUP_ID_PARAM,
    "responses": {
        200: {"description": "Grupo regenerado"},
        400: {"description": ERROR_VALIDACAO},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_GRUPO_NAO_ENCONTRADO},
        500: {"description": ERROR_INTERNO},
    },
}

INSTALLMENT_GROUP_DELETE_DOC = {
    "description": "Remove todas as parcelas do grupo.",
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": GROUP_ID_PARAM,
    "responses": {
        200: {"description": "Grupo removido"},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_GRUPO_NAO_ENCONTRADO},
        500: {"description": ERROR_INTERNO},
    },
}

INSTALLMENT_RESOLVE_DOC = {
    "description": (
        "Identifica o grupo de uma parcela. Transações antigas, sem ID de "
        "grupo, são agrupadas por comparação de campos."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": TRANSACTION_ID_PARAM,
    "responses": {
        200: {"description": "Grupo resolvido"},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_TRANSACAO_NAO_ENCONTRADA},
        409: {"description": "Grupo legado ambíguo"},
    },
}

INSTALLMENT_EDIT_DRAFT_DOC = {
    "description": (
        "Monta o rascunho de edição a partir de uma parcela: valor total, "
        "data da primeira parcela e descrição sem o sufixo."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": TRANSACTION_ID_PARAM,
    "responses": {
        200: {"description": "Rascunho montado"},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_TRANSACAO_NAO_ENCONTRADA},
    },
}

INSTALLMENT_RECORD_UPDATE_DOC = {
    "description": "Regenera o grupo ao qual a parcela pertence.",
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": TRANSACTION_ID_PARAM,
    "responses": {
        200: {"description": "Grupo regenerado"},
        400: {"description": ERROR_VALIDACAO},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_TRANSACAO_NAO_ENCONTRADA},
        409: {"description": "Grupo legado ambíguo"},
        500: {"description": ERROR_INTERNO},
    },
}

INSTALLMENT_RECORD_DELETE_DOC = {
    "description": (
        "Remove a parcela ('scope=single') ou o grupo inteiro ('scope=all')."
    ),
    "tags": [TAG_INSTALLMENTS],
    "security": _SECURITY,
    "params": TRANSACTION_ID_PARAM,
    "responses": {
        200: {"description": "Remoção concluída"},
        400: {"description": ERROR_VALIDACAO},
        401: {"description": ERROR_TOKEN_INVALIDO},
        404: {"description": ERROR_TRANSACAO_NAO_ENCONTRADA},
        409: {"description": "Grupo legado ambíguo"},
        500: {"description": ERROR_INTERNO},
    },
}
