import threading
from typing import FrozenSet, Hashable, NamedTuple, Set

from automate_base import Automate, Etat


# Constantes de configuration (valeurs du scénario de démonstration)
CAPACITE_MAX_DEFAULT = 15
CAPACITE_RESERVEE_DEFAULT = 5
PLACES_MIN_LIBRES_DEFAULT = 5
VERIFIER_INVARIANTS_DEFAULT = __debug__

# Modes de l'automate
ETAT_SEMAINE = 0
ETAT_WEEKEND = 1
EVT_OUVRIR_ZONE_RESERVEE = "ouvrir_zone_reservee"
EVT_FERMER_PARKING = "fermer_parking"


class CarParkError(Exception):
    """Erreur de base du parking."""


class ConfigurationError(CarParkError, ValueError):
    """Constantes de capacité incohérentes à la construction."""


class PreconditionError(CarParkError):
    """Opération appelée en dehors de son contrat."""


class InvariantViolation(CarParkError, AssertionError):
    """Un invariant du parking n'est plus respecté."""


class CarParkConfig(NamedTuple):
    """
    Constantes immuables du parking.

    Attributes:
        max_capacity: Nombre total de places physiques
        reserved_capacity: Places réservées aux abonnés
        min_spaces_left: Places qui doivent toujours rester libres
            dans la zone générale
    """
    max_capacity: int = CAPACITE_MAX_DEFAULT
    reserved_capacity: int = CAPACITE_RESERVEE_DEFAULT
    min_spaces_left: int = PLACES_MIN_LIBRES_DEFAULT

    def validate(self) -> None:
        """
        Vérifie la cohérence des constantes.

        Raises:
            ConfigurationError: constante non entière ou négative, ou
                min_spaces_left + reserved_capacity > max_capacity
        """
        for nom, valeur in self._asdict().items():
            if isinstance(valeur, bool) or not isinstance(valeur, int):
                raise ConfigurationError(f"{nom} doit être un entier, reçu {valeur!r}")
            if valeur < 0:
                raise ConfigurationError(f"{nom} doit être positif ou nul, reçu {valeur}")
        if self.min_spaces_left + self.reserved_capacity > self.max_capacity:
            raise ConfigurationError(
                f"min_spaces_left ({self.min_spaces_left}) + reserved_capacity "
                f"({self.reserved_capacity}) dépasse max_capacity ({self.max_capacity})"
            )


class CarPark:
    """
    Parking à deux zones : une zone générale et une zone réservée aux abonnés.

    En semaine (mode SEMAINE) la zone réservée n'accueille que les abonnés et
    ses places sont retirées du plafond de la zone générale. Le weekend
    (mode WEEKEND) la zone réservée est ouverte à tous et le parking n'est
    plus qu'un seul pool.

    Les refus pour manque de place sont des retours False ; les violations
    de contrat lèvent une CarParkError. Toutes les opérations publiques
    prennent le verrou de l'instance.

    Attributes:
        config: Constantes de capacité (immuables)
        automate: Automate des modes SEMAINE / WEEKEND
        verifier: True pour vérifier les invariants avant et après chaque
            opération qui modifie l'état
    """

    def __init__(self, max_capacity: int = CAPACITE_MAX_DEFAULT,
                 reserved_capacity: int = CAPACITE_RESERVEE_DEFAULT,
                 min_spaces_left: int = PLACES_MIN_LIBRES_DEFAULT,
                 check_invariants: bool = VERIFIER_INVARIANTS_DEFAULT) -> None:
        config = CarParkConfig(max_capacity, reserved_capacity, min_spaces_left)
        config.validate()
        self._config = config
        self.verifier = check_invariants

        self._park: Set[Hashable] = set()
        self._reserved: Set[Hashable] = set()
        self._subscribed: Set[Hashable] = set()
        self._lock = threading.RLock()

        self.automate = Automate()
        self._construire_automate()
        self._verifier_invariants()
        print(f"[CarPark] Initialisé : {max_capacity} places dont {reserved_capacity} "
              f"réservées, {min_spaces_left} toujours libres.")

    @classmethod
    def from_config(cls, config: CarParkConfig,
                    check_invariants: bool = VERIFIER_INVARIANTS_DEFAULT) -> "CarPark":
        return cls(config.max_capacity, config.reserved_capacity,
                   config.min_spaces_left, check_invariants=check_invariants)

    def _construire_automate(self) -> None:
        """Construit l'automate des modes semaine / weekend."""
        self.automate.ajouter_etat(Etat(ETAT_SEMAINE, "SEMAINE", "initial"))
        self.automate.ajouter_etat(Etat(ETAT_WEEKEND, "WEEKEND"))

        self.automate.ajouter_transition(ETAT_SEMAINE, ETAT_WEEKEND, EVT_OUVRIR_ZONE_RESERVEE)
        self.automate.ajouter_transition(ETAT_WEEKEND, ETAT_WEEKEND, EVT_OUVRIR_ZONE_RESERVEE)
        self.automate.ajouter_transition(ETAT_SEMAINE, ETAT_SEMAINE, EVT_FERMER_PARKING)
        self.automate.ajouter_transition(ETAT_WEEKEND, ETAT_SEMAINE, EVT_FERMER_PARKING)

    # ------------------------------------------------------------------
    # Accès en lecture seule
    # ------------------------------------------------------------------
    @property
    def config(self) -> CarParkConfig:
        return self._config

    @property
    def max_capacity(self) -> int:
        return self._config.max_capacity

    @property
    def reserved_capacity(self) -> int:
        return self._config.reserved_capacity

    @property
    def min_spaces_left(self) -> int:
        return self._config.min_spaces_left

    @property
    def reserved_open(self) -> bool:
        return self.automate.etat_courant.id_etat == ETAT_WEEKEND

    @property
    def park(self) -> FrozenSet[Hashable]:
        with self._lock:
            return frozenset(self._park)

    @property
    def reserved(self) -> FrozenSet[Hashable]:
        with self._lock:
            return frozenset(self._reserved)

    @property
    def subscribed(self) -> FrozenSet[Hashable]:
        with self._lock:
            return frozenset(self._subscribed)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------
    def check_invariants(self) -> None:
        """
        Vérifie les invariants du parking.

        Raises:
            InvariantViolation: au premier invariant non respecté
        """
        with self._lock:
            cfg = self._config
            if cfg.max_capacity < cfg.min_spaces_left + len(self._park):
                raise InvariantViolation(
                    f"{len(self._park)} voitures garées, la marge de "
                    f"{cfg.min_spaces_left} places n'est plus respectée")
            if cfg.max_capacity < cfg.reserved_capacity:
                raise InvariantViolation("reserved_capacity dépasse max_capacity")
            if len(self._subscribed) > cfg.reserved_capacity:
                raise InvariantViolation(
                    f"{len(self._subscribed)} abonnés pour {cfg.reserved_capacity} places réservées")
            if len(self._reserved) > len(self._subscribed):
                raise InvariantViolation(
                    f"{len(self._reserved)} voitures en zone réservée pour "
                    f"{len(self._subscribed)} abonnés")
            if not self._reserved <= self._park:
                raise InvariantViolation(
                    f"Voitures en zone réservée absentes du parking: {self._reserved - self._park}")

    def _verifier_invariants(self) -> None:
        if self.verifier:
            self.check_invariants()

    # ------------------------------------------------------------------
    # Prédicats dérivés
    # ------------------------------------------------------------------
    def has_free_space(self) -> bool:
        """True s'il reste une place pour une nouvelle voiture en zone générale."""
        with self._lock:
            cfg = self._config
            if self.reserved_open:
                libres = cfg.max_capacity - cfg.min_spaces_left - len(self._park)
            else:
                # Les places réservées sont retirées du plafond, même vides
                libres = (cfg.max_capacity - cfg.min_spaces_left - cfg.reserved_capacity
                          - (len(self._park) - len(self._reserved)))
            return libres > 0

    def can_subscribe(self) -> bool:
        with self._lock:
            return len(self._subscribed) < self._config.reserved_capacity

    # ------------------------------------------------------------------
    # Opérations
    # ------------------------------------------------------------------
    def enter_car_park(self, car: Hashable) -> bool:
        """
        Fait entrer une voiture dans la zone générale.

        Args:
            car: Identifiant de la voiture

        Returns:
            True si la voiture est (ou était déjà) garée, False si le
            parking est complet
        """
        with self._lock:
            self._verifier_invariants()
            if car in self._park:
                return True
            if not self.has_free_space():
                print(f"[Refus] Voiture {car}: zone générale COMPLÈTE.")
                return False

            self._park.add(car)
            self._verifier_invariants()
            print(f"[Succès] Voiture {car} garée. Places disponibles: {self.check_availability()}")
            return True

    def leave_car_park(self, car: Hashable) -> None:
        """Fait sortir une voiture, quelle que soit sa zone. Sans effet si absente."""
        with self._lock:
            self._verifier_invariants()
            present = car in self._park
            self._park.discard(car)
            self._reserved.discard(car)
            self._verifier_invariants()
            if present:
                print(f"[Sortie] Voiture {car} sortie. Places disponibles: {self.check_availability()}")

    def check_availability(self) -> int:
        """
        Nombre de places disponibles.

        Le weekend tout le parking compte ; en semaine les places réservées
        sont exclues et les occupants de la zone réservée ne sont pas
        décomptés de la zone générale.
        """
        with self._lock:
            cfg = self._config
            if self.reserved_open:
                return cfg.max_capacity - len(self._park)
            return cfg.max_capacity - cfg.reserved_capacity - (len(self._park) - len(self._reserved))

    def enter_reserved_car_park(self, car: Hashable) -> bool:
        """
        Fait entrer une voiture dans la zone réservée.

        Le weekend la zone réservée est une place ordinaire et l'entrée suit
        les règles de `enter_car_park`. En semaine seule une voiture abonnée
        peut entrer ; sa place est garantie puisque les abonnements sont
        plafonnés à `reserved_capacity`.

        Args:
            car: Identifiant de la voiture

        Returns:
            True si la voiture est garée, False si le parking est complet
            (weekend uniquement)

        Raises:
            PreconditionError: voiture non abonnée alors que la zone
                réservée est fermée au public
        """
        with self._lock:
            if self.reserved_open:
                return self.enter_car_park(car)

            if car not in self._subscribed:
                raise PreconditionError(
                    f"Voiture {car} non abonnée: zone réservée fermée au public en semaine")

            self._verifier_invariants()
            self._park.add(car)
            self._reserved.add(car)
            self._verifier_invariants()
            print(f"[Succès] Abonné {car} garé en zone réservée.")
            return True

    def make_subscription(self, car: Hashable) -> bool:
        """
        Abonne une voiture à la zone réservée.

        Args:
            car: Identifiant de la voiture

        Returns:
            True si la voiture est abonnée à l'issue de l'appel (y compris
            si elle l'était déjà), False si tous les abonnements sont pris
        """
        with self._lock:
            self._verifier_invariants()
            if car in self._subscribed:
                return True
            if not self.can_subscribe():
                print(f"[Refus] Voiture {car}: plus d'abonnement disponible.")
                return False

            self._subscribed.add(car)
            self._verifier_invariants()
            print(f"[Succès] Voiture {car} abonnée "
                  f"({len(self._subscribed)}/{self._config.reserved_capacity}).")
            return True

    def open_reserved_area(self) -> None:
        """Passe en mode weekend : la zone réservée est ouverte à tous."""
        with self._lock:
            self._verifier_invariants()
            self.automate.transition(EVT_OUVRIR_ZONE_RESERVEE)
            # Les occupants de la zone réservée deviennent des occupants ordinaires
            self._reserved.clear()
            self._verifier_invariants()
            print(f"[Mode] Zone réservée ouverte. Places disponibles: {self.check_availability()}")

    def close_car_park(self) -> None:
        """
        Fermeture de fin de journée : toutes les voitures restantes sont
        évacuées et le parking repasse en mode semaine. Les abonnements sont
        conservés.
        """
        with self._lock:
            self._verifier_invariants()
            evacuees = len(self._park)
            self._park.clear()
            self._reserved.clear()
            self.automate.transition(EVT_FERMER_PARKING)
            self._verifier_invariants()
            print(f"[Fermeture] {evacuees} voiture(s) évacuée(s), "
                  f"{len(self._subscribed)} abonnement(s) conservé(s).")

    # ------------------------------------------------------------------
    # Rapport
    # ------------------------------------------------------------------
    def get_status(self) -> dict:
        """
        Retourne l'état actuel du parking.

        Returns:
            Dictionnaire contenant le mode, les ensembles de voitures et
            les constantes de capacité
        """
        with self._lock:
            return {
                "etat_mode": self.automate.etat_courant.label_etat,
                "reserved_open": self.reserved_open,
                "park": frozenset(self._park),
                "reserved": frozenset(self._reserved),
                "subscribed": frozenset(self._subscribed),
                "max_capacity": self._config.max_capacity,
                "reserved_capacity": self._config.reserved_capacity,
                "min_spaces_left": self._config.min_spaces_left,
                "disponibles": self.check_availability(),
                "general": len(self._park) - len(self._reserved),
                "abonnes": len(self._subscribed),
            }

    def rapport(self) -> str:
        status = self.get_status()

        def _fmt(voitures: FrozenSet[Hashable]) -> str:
            return ", ".join(str(v) for v in sorted(voitures, key=str)) or "-"

        lignes = [
            f"=== PARKING ({status['etat_mode']}) ===",
            f"Capacité: {status['max_capacity']} | Réservées: {status['reserved_capacity']}"
            f" | Marge: {status['min_spaces_left']}",
            f"Garées ({len(status['park'])}): {_fmt(status['park'])}",
            f"Zone réservée ({len(status['reserved'])}): {_fmt(status['reserved'])}",
            f"Abonnés ({status['abonnes']}): {_fmt(status['subscribed'])}",
            f"Places disponibles: {status['disponibles']}",
        ]
        return "\n".join(lignes)

    def afficher_etat(self) -> None:
        print(self.rapport())

    def __repr__(self) -> str:
        cfg = self._config
        return (f"CarPark(max_capacity={cfg.max_capacity}, "
                f"reserved_capacity={cfg.reserved_capacity}, "
                f"min_spaces_left={cfg.min_spaces_left})")
