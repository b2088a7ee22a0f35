"""
Localization — display strings for node types and validation messages.

The builder core never depends on a translation back end being
available: ``Translator.t`` always falls back to the English default
passed by the caller, and then to the raw key.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Optional

logger = getLogger(__name__)


# French catalog for the keys used by node types and the validator.
# English strings live next to the code that uses them as defaults.
_FR: Dict[str, str] = {
    "node.default.label": "Nœud",
    "node.default.desc": "Nœud personnalisé",
    "node.contact.label": "Contact",
    "node.contact.desc": "Créer ou mettre à jour un contact",
    "node.offer.label": "Offre",
    "node.offer.desc": "Générer une offre commerciale",
    "node.sale.label": "Vente",
    "node.sale.desc": "Convertir l'offre en vente",
    "node.service-order.label": "Ordre de service",
    "node.service-order.desc": "Créer un ordre de service",
    "node.dispatch.label": "Intervention",
    "node.dispatch.desc": "Planifier une intervention technicien",
    "node.email.label": "Email",
    "node.email.desc": "Envoyer un email",
    "node.email-template.label": "Email modèle",
    "node.email-template.desc": "Envoyer un email à partir d'un modèle",
    "node.email-llm.label": "Email IA",
    "node.email-llm.desc": "Email rédigé par l'IA",
    "node.llm-writer.label": "Rédacteur IA",
    "node.llm-writer.desc": "Générer du contenu avec un LLM",
    "node.llm-analyzer.label": "Analyseur IA",
    "node.llm-analyzer.desc": "Analyser des données avec un LLM",
    "node.llm-personalizer.label": "Personnalisation IA",
    "node.llm-personalizer.desc": "Personnaliser un contenu avec un LLM",
    "node.trigger.label": "Déclencheur",
    "node.trigger.desc": "Démarrer le workflow manuellement",
    "node.webhook.label": "Webhook",
    "node.webhook.desc": "Démarrer sur un appel HTTP entrant",
    "node.scheduled.label": "Planifié",
    "node.scheduled.desc": "Démarrer selon un planning",
    "node.condition.label": "Condition",
    "node.condition.desc": "Tester une condition simple",
    "node.filter.label": "Filtre",
    "node.filter.desc": "Filtrer les éléments",
    "node.if-else.label": "SI / SINON",
    "node.if-else.desc": "Branchement conditionnel",
    "node.switch.label": "SWITCH",
    "node.switch.desc": "Branchement multiple selon une valeur",
    "node.loop.label": "Boucle",
    "node.loop.desc": "Répéter une séquence d'actions",
    "node.parallel.label": "Parallèle",
    "node.parallel.desc": "Exécuter plusieurs branches en parallèle",
    "node.try-catch.label": "TRY / CATCH",
    "node.try-catch.desc": "Gérer les erreurs et les reprises",
    "node.action.label": "Action",
    "node.action.desc": "Action générique",
    "node.database.label": "Base de données",
    "node.database.desc": "Lire ou écrire en base",
    "node.api.label": "API",
    "node.api.desc": "Appeler une API externe",
    "case": "Cas",
    "validation.empty_graph": "Le workflow doit contenir au moins un nœud",
    "validation.dangling_source": "La connexion {edge_id} référence un nœud source inconnu : {node_id}",
    "validation.dangling_target": "La connexion {edge_id} référence un nœud cible inconnu : {node_id}",
    "validation.invalid_source_port": "La connexion {edge_id} utilise un port de sortie inconnu '{port}' sur {node}",
    "validation.invalid_target_port": "La connexion {edge_id} utilise un port d'entrée inconnu '{port}' sur {node}",
    "validation.orphan_node": "Nœud isolé détecté : {node}",
    "validation.not_configured": "{node} n'est pas configuré, les valeurs par défaut s'appliquent",
    "validation.no_trigger": "Il est recommandé d'avoir au moins un déclencheur dans le workflow",
    "validation.unreachable": "{node} n'est pas atteignable depuis un déclencheur",
    "validation.cycle": "Le workflow contient un cycle hors boucle passant par {node}",
    "validation.if_else_outputs": "Le nœud SI/SINON {node} doit avoir exactement 2 sorties",
    "validation.min_outputs": "Le nœud {node} devrait avoir au moins 2 sorties",
    "template.business.name": "Processus commercial",
    "template.business.desc": "Du contact à l'offre, la vente, l'ordre de service et l'intervention, avec un email IA",
    "editor.template_created": "Modèle créé",
    "editor.node_removed": "Nœud supprimé",
    "editor.config_saved": "Configuration enregistrée",
    "editor.run_busy": "Le workflow est déjà en cours d'exécution",
    "editor.run_blocked": "Erreurs de validation : {errors}",
    "editor.run_started": "Exécution du workflow en cours",
    "editor.run_completed": "Workflow exécuté avec succès",
    "editor.import_failed": "Échec de l'import : {error}",
    "editor.imported": "Workflow importé chargé : {name}",
    "editor.workflow_saved": "Workflow enregistré : {name}",
    "editor.workflow_loaded": "Workflow chargé : {name}",
    "editor.workflow_not_found": "Workflow introuvable : {id}",
    "editor.new_workflow": "Nouveau workflow créé",
    "editor.workflow_duplicated": "Workflow dupliqué : {name}",
    "editor.workflow_deleted": "Workflow supprimé",
}

CATALOGS: Dict[str, Dict[str, str]] = {
    "en": {},
    "fr": _FR,
}


class Translator:
    """Key-based string lookup with caller-supplied defaults.

    ``t(key, default, **params)`` returns the catalog entry for the
    active locale, else ``default``, else ``key``; the result is
    ``str.format``-ed with ``params``.
    """

    def __init__(
        self,
        locale: str = "en",
        catalogs: Optional[Dict[str, Dict[str, str]]] = None,
    ) -> None:
        self._catalogs = catalogs if catalogs is not None else CATALOGS
        self.locale = locale
        if locale not in self._catalogs:
            logger.warning(f"Unknown locale '{locale}', falling back to raw strings")

    def t(self, key: str, default: Optional[str] = None, **params: Any) -> str:
        catalog = self._catalogs.get(self.locale, {})
        text = catalog.get(key) or default or key
        if params:
            try:
                return text.format(**params)
            except (KeyError, IndexError, ValueError):
                logger.debug(f"Could not format message '{key}' with {params}")
                return text
        return text


_default_translator: Optional[Translator] = None


def get_translator() -> Translator:
    """Return the process-wide translator, built from the configured locale."""
    global _default_translator
    if _default_translator is None:
        from flowdesk.config import get_config
        _default_translator = Translator(get_config("workflow_builder").locale)
    return _default_translator


def set_translator(translator: Optional[Translator]) -> None:
    global _default_translator
    _default_translator = translator
