# src/fleetsync/__init__.py
"""
Fleetsync — reconciliação declarativa de configuração entre muitos repositórios.

Este pacote raiz define o namespace público do Fleetsync: a partir de uma
única especificação YAML em camadas, resolve o estado desejado de cada
repositório (arquivos, settings, rulesets, labels) e o compara com o
estado atual da plataforma.

Princípios centrais:
    - A resolução é determinística e livre de efeitos colaterais
    - Erros de autoria abortam a resolução inteira antes de qualquer repositório
    - Falhas de reconciliação são isoladas por repositório

Arquitetura em alto nível:
    - core.config   → carregamento, merge, interpolação e hashing de configuração
    - core.diff     → diff estrutural e reconciliação de entidades com renomeação
    - core.pipeline → contexto de execução, tipos de resultado e registro
    - core.engine   → execução da reconciliação sobre todos os repositórios

Limites explícitos:
    - Não realiza I/O de rede (clonagem, chamadas de API)
    - Não aplica mudanças nem formata planos
"""

from .core.config import load_config
from .core.diff import diff, reconcile_entities

__all__ = ["load_config", "diff", "reconcile_entities"]
