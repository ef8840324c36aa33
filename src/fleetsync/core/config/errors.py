# src/fleetsync/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Fleetsync.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, a normalização e a resolução de configuração por
repositório.

As exceções aqui definidas representam **erros de autoria
determinísticos**, e não falhas transitórias. Nenhuma delas é
re-tentada ou recuperada silenciosamente.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros de resolução abortam a configuração inteira
    - Toda exceção de resolução carrega o nome do arquivo, repo ou entidade ofensora

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção aqui representa erro de reconciliação com o estado remoto

Limites explícitos:
    - Não realiza fallback ou recovery
    - Não depende de Engine, Pipeline ou diff
"""

from typing import Optional


def _location(file_name: Optional[str], repo: Optional[str]) -> str:
    parts = []
    if file_name:
        parts.append(f"arquivo '{file_name}'")
    if repo:
        parts.append(f"repo {repo}")
    return f" ({', '.join(parts)})" if parts else ""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Fleetsync.

    Todas as exceções levantadas durante carregamento, parsing e
    normalização da configuração devem herdar desta classe, permitindo
    captura genérica no ponto de entrada.
    """


class ConfigFileNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração não existe
    no caminho especificado.

    Limites explícitos:
        - Não tenta inferir ou procurar caminhos alternativos
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados:
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um mapa chave-valor.
    """


class InvalidMergeStrategyError(ConfigError):
    """
    Exceção levantada quando uma estratégia de merge desconhecida é
    declarada em `mergeStrategy` ou em uma diretiva `$arrayMerge`.
    """


class ContentTypeMismatch(ConfigError):
    """
    Exceção levantada quando o conteúdo base e o overlay de um arquivo
    possuem tipos de conteúdo incompatíveis.

    Exemplo de conflito:
        - base:    "texto simples"
        - overlay: {"chave": "valor"}

    Decisões arquiteturais:
        - Texto e conteúdo estruturado nunca são mesclados entre si
        - O erro aborta a resolução inteira antes de qualquer repo ser processado
    """

    def __init__(
        self,
        file_name: str,
        base_kind: str,
        overlay_kind: str,
        *,
        repo: Optional[str] = None,
    ):
        self.file_name = file_name
        self.base_kind = base_kind
        self.overlay_kind = overlay_kind
        self.repo = repo
        super().__init__(
            f"Tipo de conteúdo incompatível em '{file_name}': "
            f"base é {base_kind}, overlay é {overlay_kind}"
            + _location(None, repo)
        )


class MissingEnvironmentVariable(ConfigError):
    """
    Exceção levantada quando um placeholder obrigatório (`${NAME}` ou
    `${NAME:?mensagem}`) referencia uma variável de ambiente ausente
    durante a interpolação estrita.

    `file_name` e `repo` são preenchidos pelo normalizador quando a
    interpolação ocorre dentro do conteúdo de um arquivo.
    """

    def __init__(
        self,
        name: str,
        message: Optional[str] = None,
        *,
        file_name: Optional[str] = None,
        repo: Optional[str] = None,
    ):
        self.name = name
        self.custom_message = message
        self.file_name = file_name
        self.repo = repo
        if message:
            text = f"Variável de ambiente '{name}' ausente: {message}"
        else:
            text = f"Variável de ambiente obrigatória não definida: '{name}'"
        super().__init__(text + _location(file_name, repo))


class ReservedKeyCollision(ConfigError):
    """
    Exceção levantada quando a chave reservada `inherit` é usada como
    nome real de arquivo ou entidade, ou recebe um valor não booleano.
    """

    def __init__(self, collection: str, context: str):
        self.collection = collection
        self.context = context
        super().__init__(
            f"{context}: 'inherit' é uma chave reservada em '{collection}' "
            "e só aceita valores booleanos"
        )


class InvalidOptOut(ConfigError):
    """
    Exceção levantada quando um repo faz opt-out (`nome: false`) de uma
    entidade que não está definida na raiz.
    """

    def __init__(self, collection: str, name: str, context: str):
        self.collection = collection
        self.name = name
        self.context = context
        super().__init__(
            f"{context}: não é possível fazer opt-out de '{name}' - "
            f"não definido em settings.{collection} da raiz"
        )
