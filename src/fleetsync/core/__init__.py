# src/fleetsync/core/__init__.py
"""
Core do Fleetsync.

O core reúne a resolução de configuração e a reconciliação estrutural,
projetadas para ser:
    - determinísticas
    - testáveis de forma isolada
    - livres de I/O de rede

Componentes principais:
    - config   → resolução de configuração (merge, herança, interpolação, hashing)
    - diff     → diff estrutural, reconciliação por chave e adaptadores de formato
    - pipeline → contexto de execução, contrato de reconciliador e registry
    - engine   → execução controlada da reconciliação por repositório

Limites explícitos:
    - Não depende de CLI nem de clientes de plataforma
    - Não persiste manifestos
"""
