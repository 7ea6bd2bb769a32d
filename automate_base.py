from typing import Dict, List, Optional


TYPES_ETAT = ("initial", "normal", "final")


class Etat:
    """
    Représente un mode du parking dans l'automate fini.

    Attributes:
        id_etat: Identifiant unique de l'état
        label_etat: Nom lisible de l'état (ex: "SEMAINE")
        type_etat: Type d'état ("initial", "normal", "final")
        transitions: Dictionnaire des transitions possibles {événement: id_destination}
    """

    def __init__(self, id_etat: int, label_etat: str, type_etat: str = "normal") -> None:
        if type_etat not in TYPES_ETAT:
            raise ValueError(f"Type d'état inconnu: {type_etat!r}")
        self.id_etat = id_etat
        self.label_etat = label_etat
        self.type_etat = type_etat
        self.transitions: Dict[str, int] = {}

    @property
    def est_initial(self) -> bool:
        return self.type_etat == "initial"

    def __repr__(self) -> str:
        return f"Etat({self.id_etat}: {self.label_etat} [{self.type_etat}])"


class Transition:
    """Arc étiqueté entre deux états (utilisé pour dessiner le graphe)."""

    def __init__(self, etat_source: Etat, etat_dest: Etat, etiquette: str) -> None:
        self.etat_source = etat_source
        self.etat_dest = etat_dest
        self.etiquette = etiquette

    def __repr__(self) -> str:
        return (f"Transition({self.etat_source.label_etat} "
                f"--{self.etiquette}--> {self.etat_dest.label_etat})")


class Automate:
    """
    Moteur générique de l'automate à états finis.

    Un seul état peut être initial ; c'est celui vers lequel
    `reinitialiser` ramène l'automate.

    Attributes:
        list_etats: Dictionnaire des états {id: Etat}
        list_transitions: Liste de toutes les transitions
        etat_courant: État actuel du système
        historique: Labels des états visités depuis le dernier reset
    """

    def __init__(self) -> None:
        self.list_etats: Dict[int, Etat] = {}
        self.list_transitions: List[Transition] = []
        self.etat_courant: Optional[Etat] = None
        self.etat_initial: Optional[Etat] = None
        self.historique: List[str] = []

    def ajouter_etat(self, etat: Etat) -> None:
        """
        Enregistre un nouvel état dans le système.

        Args:
            etat: L'objet Etat à ajouter

        Raises:
            ValueError: si l'identifiant est déjà pris, ou si un second
                état initial est déclaré
        """
        if etat.id_etat in self.list_etats:
            raise ValueError(f"État {etat.id_etat} déjà défini.")
        if etat.est_initial and self.etat_initial is not None:
            raise ValueError(f"État initial déjà défini: {self.etat_initial.label_etat}")

        self.list_etats[etat.id_etat] = etat
        if etat.est_initial:
            self.etat_initial = etat
            self.etat_courant = etat
            self.historique = [etat.label_etat]
            print(f"[Automate] État initial défini: {etat.label_etat}")

    def ajouter_transition(self, id_src: int, id_dst: int, evt: str) -> None:
        """
        Crée une transition logique entre deux états existants.

        Args:
            id_src: ID de l'état source
            id_dst: ID de l'état destination
            evt: Événement déclencheur

        Raises:
            ValueError: si l'un des deux états n'existe pas
        """
        if id_src not in self.list_etats or id_dst not in self.list_etats:
            raise ValueError(f"État source {id_src} ou destination {id_dst} inexistant.")

        src = self.list_etats[id_src]
        dst = self.list_etats[id_dst]
        self.list_transitions.append(Transition(src, dst, evt))
        src.transitions[evt] = id_dst

    def evenements_possibles(self) -> List[str]:
        """Événements acceptés depuis l'état courant, triés."""
        if self.etat_courant is None:
            return []
        return sorted(self.etat_courant.transitions)

    def transition(self, evt: str) -> bool:
        """
        Tente d'exécuter une transition basée sur l'événement donné.

        Args:
            evt: Événement déclencheur

        Returns:
            True si le changement d'état a eu lieu, False sinon
        """
        if self.etat_courant is None:
            print(f"[Bloqué] Événement '{evt}' reçu avant la définition d'un état initial")
            return False

        if evt not in self.etat_courant.transitions:
            print(f"[Bloqué] Événement '{evt}' impossible depuis l'état '{self.etat_courant.label_etat}'")
            return False

        ancien_etat = self.etat_courant
        nouveau_etat = self.list_etats[ancien_etat.transitions[evt]]
        self.etat_courant = nouveau_etat
        self.historique.append(nouveau_etat.label_etat)
        print(f"[Transition] '{evt}': {ancien_etat.label_etat} -> {nouveau_etat.label_etat}")
        return True

    def reinitialiser(self) -> None:
        """Ramène l'automate dans son état initial et vide l'historique."""
        self.etat_courant = self.etat_initial
        self.historique = [self.etat_initial.label_etat] if self.etat_initial else []
