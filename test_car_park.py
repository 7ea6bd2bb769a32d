import random

import pytest

from car_park import (CarPark, CarParkConfig, ConfigurationError, InvariantViolation,
                      PreconditionError)


def _etat(p):
    return (p.park, p.reserved, p.subscribed, p.reserved_open)


def test_initialisation():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    assert p.park == frozenset()
    assert p.reserved == frozenset()
    assert p.subscribed == frozenset()
    assert p.reserved_open is False
    assert p.automate.etat_courant.label_etat == "SEMAINE"


def test_config_par_defaut():
    p = CarPark()
    assert p.config == CarParkConfig(15, 5, 5)
    assert CarPark.from_config(CarParkConfig(20, 4, 2)).max_capacity == 20


@pytest.mark.parametrize("args", [
    (10, 6, 5),   # 6 + 5 > 10
    (-1, 0, 0),
    (10, -2, 0),
    (10, 2, 2.5),
    (10, True, 0),
])
def test_configuration_invalide(args):
    with pytest.raises(ConfigurationError):
        CarPark(*args)


def test_configuration_error_est_une_value_error():
    with pytest.raises(ValueError):
        CarPark(max_capacity=3, reserved_capacity=2, min_spaces_left=2)


def test_configuration_limite_acceptee():
    p = CarPark(max_capacity=10, reserved_capacity=5, min_spaces_left=5)
    # Plafond général nul : aucune entrée possible en semaine
    assert p.enter_car_park(1) is False
    assert p.check_availability() == 5


def test_constantes_non_modifiables():
    p = CarPark()
    with pytest.raises(AttributeError):
        p.max_capacity = 100
    with pytest.raises(AttributeError):
        p.config.reserved_capacity = 0


def test_scenario_demo_semaine():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    for car in range(1, 6):
        assert p.enter_car_park(car) is True

    # Plafond général = 15 - 5 - 5 - 0 = 5
    assert p.enter_car_park(6) is False
    assert p.park == frozenset(range(1, 6))
    assert p.check_availability() == 5


def test_scenario_demo_weekend():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    for car in range(1, 6):
        p.enter_car_park(car)

    p.open_reserved_area()
    assert p.check_availability() == 10
    assert p.reserved_open is True
    # Le weekend le plafond passe à 15 - 5 = 10
    for car in range(6, 11):
        assert p.enter_car_park(car) is True
    assert p.enter_car_park(11) is False


def test_entree_idempotente():
    p = CarPark()
    assert p.enter_car_park(42) is True
    avant = _etat(p)
    assert p.enter_car_park(42) is True
    assert _etat(p) == avant


def test_entree_deja_garee_parking_plein():
    p = CarPark(max_capacity=6, reserved_capacity=0, min_spaces_left=5)
    assert p.enter_car_park(1) is True
    assert p.has_free_space() is False
    # Déjà garée : succès même si plus aucune place
    assert p.enter_car_park(1) is True


def test_sortie_puis_entree():
    p = CarPark()
    p.enter_car_park(7)
    p.leave_car_park(7)
    assert 7 not in p.park
    assert p.enter_car_park(7) is True
    assert p.park == frozenset({7})


def test_sortie_voiture_absente():
    p = CarPark()
    p.enter_car_park(1)
    avant = _etat(p)
    p.leave_car_park(99)
    assert _etat(p) == avant


def test_sortie_zone_reservee():
    p = CarPark()
    p.make_subscription(3)
    p.enter_reserved_car_park(3)
    p.leave_car_park(3)
    assert 3 not in p.park
    assert 3 not in p.reserved
    assert 3 in p.subscribed


def test_abonnement_idempotent():
    p = CarPark(max_capacity=15, reserved_capacity=1, min_spaces_left=5)
    assert p.make_subscription(1) is True
    assert p.make_subscription(1) is True
    assert p.subscribed == frozenset({1})


def test_plafond_abonnements():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    for car in range(5):
        assert p.make_subscription(car) is True
    assert p.can_subscribe() is False

    avant = p.subscribed
    assert p.make_subscription(100) is False
    assert p.subscribed == avant


def test_entree_reservee_abonne_semaine():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    for car in range(1, 6):
        p.enter_car_park(car)
    p.make_subscription(50)

    # Zone générale pleine, mais la place de l'abonné est garantie
    assert p.enter_reserved_car_park(50) is True
    assert 50 in p.park and 50 in p.reserved
    # Les occupants de la zone réservée ne comptent pas dans la zone générale
    assert p.check_availability() == 5
    assert p.enter_car_park(6) is False


def test_entree_reservee_double():
    p = CarPark()
    p.make_subscription(8)
    assert p.enter_reserved_car_park(8) is True
    assert p.enter_reserved_car_park(8) is True
    assert p.park == frozenset({8})
    assert p.reserved == frozenset({8})


def test_abonne_deja_en_zone_generale():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    p.make_subscription(1)
    p.enter_car_park(1)
    assert p.check_availability() == 9

    # Passage en zone réservée : libère une place générale
    assert p.enter_reserved_car_park(1) is True
    assert p.check_availability() == 10
    assert p.park == frozenset({1})


def test_entree_reservee_non_abonne_semaine():
    p = CarPark()
    avant = _etat(p)
    with pytest.raises(PreconditionError):
        p.enter_reserved_car_park(13)
    assert _etat(p) == avant


def test_entree_reservee_weekend():
    p = CarPark(max_capacity=8, reserved_capacity=2, min_spaces_left=5)
    p.open_reserved_area()
    # Non abonnée : acceptée comme une entrée ordinaire
    assert p.enter_reserved_car_park(1) is True
    assert p.reserved == frozenset()
    assert p.enter_reserved_car_park(2) is True
    assert p.enter_reserved_car_park(3) is True
    assert p.enter_reserved_car_park(4) is False
    assert p.park == frozenset({1, 2, 3})


def test_ouverture_zone_reservee():
    p = CarPark()
    p.make_subscription(1)
    p.enter_reserved_car_park(1)
    p.enter_car_park(2)

    p.open_reserved_area()
    assert p.reserved_open is True
    assert p.reserved == frozenset()
    assert p.park == frozenset({1, 2})

    # Deuxième ouverture sans effet
    p.open_reserved_area()
    assert p.reserved_open is True


def test_fermeture_conserve_abonnements():
    p = CarPark()
    for car in range(3):
        p.make_subscription(car)
    p.enter_reserved_car_park(0)
    p.enter_car_park(10)
    p.open_reserved_area()
    p.enter_car_park(11)
    abonnes = p.subscribed

    p.close_car_park()
    assert p.park == frozenset()
    assert p.reserved == frozenset()
    assert p.reserved_open is False
    assert p.subscribed == abonnes


def test_fermeture_parking_vide():
    p = CarPark()
    p.close_car_park()
    assert p.reserved_open is False
    assert p.automate.etat_courant.label_etat == "SEMAINE"


def test_semaine_apres_fermeture():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    p.open_reserved_area()
    p.close_car_park()
    for car in range(5):
        assert p.enter_car_park(car) is True
    assert p.enter_car_park(5) is False


def test_verification_invariants_detecte_corruption():
    p = CarPark()
    p._reserved.add(1)  # en zone réservée sans être garée
    with pytest.raises(InvariantViolation):
        p.check_invariants()
    with pytest.raises(AssertionError):
        p.enter_car_park(2)


def test_verification_desactivee():
    p = CarPark(check_invariants=False)
    p._reserved.add(1)
    # Aucune vérification : l'opération passe
    assert p.enter_car_park(2) is True


def test_get_status():
    p = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)
    p.enter_car_park(1)
    p.make_subscription(2)
    p.enter_reserved_car_park(2)

    status = p.get_status()
    assert status["etat_mode"] == "SEMAINE"
    assert status["reserved_open"] is False
    assert status["park"] == frozenset({1, 2})
    assert status["reserved"] == frozenset({2})
    assert status["subscribed"] == frozenset({2})
    assert status["max_capacity"] == 15
    assert status["reserved_capacity"] == 5
    assert status["min_spaces_left"] == 5
    assert status["disponibles"] == 9
    assert status["general"] == 1
    assert status["abonnes"] == 1


def test_rapport():
    p = CarPark()
    p.enter_car_park(2)
    p.enter_car_park(1)
    texte = p.rapport()
    assert "SEMAINE" in texte
    assert "Garées (2): 1, 2" in texte
    assert "Abonnés (0): -" in texte


def test_rapport_affiche(capsys):
    p = CarPark()
    p.afficher_etat()
    assert "=== PARKING (SEMAINE) ===" in capsys.readouterr().out


def test_log_refus(capsys):
    p = CarPark(max_capacity=10, reserved_capacity=5, min_spaces_left=5)
    p.enter_car_park(1)
    assert "[Refus]" in capsys.readouterr().out


def _operation_aleatoire(p, rng, voitures):
    op = rng.choice(["enter", "leave", "reserved", "subscribe", "open", "close", "check"])
    car = rng.choice(voitures)
    avant = _etat(p)

    if op == "enter":
        deja = car in p.park
        ok = p.enter_car_park(car)
        if deja:
            assert ok is True
        if ok:
            assert car in p.park
        else:
            assert _etat(p) == avant
    elif op == "leave":
        p.leave_car_park(car)
        assert car not in p.park and car not in p.reserved
    elif op == "reserved":
        if car in p.subscribed or p.reserved_open:
            ok = p.enter_reserved_car_park(car)
            if not p.reserved_open:
                assert ok is True and car in p.reserved
            if not ok:
                assert _etat(p) == avant
        else:
            with pytest.raises(PreconditionError):
                p.enter_reserved_car_park(car)
            assert _etat(p) == avant
    elif op == "subscribe":
        ok = p.make_subscription(car)
        assert ok == (car in p.subscribed)
        if not ok:
            assert _etat(p) == avant
    elif op == "open":
        p.open_reserved_area()
        assert p.reserved_open is True and p.reserved == frozenset()
        assert p.park == avant[0]
    elif op == "close":
        p.close_car_park()
        assert p.park == frozenset() and p.reserved == frozenset()
        assert p.reserved_open is False
        assert p.subscribed == avant[2]
    else:
        assert p.check_availability() >= 0
        assert _etat(p) == avant


@pytest.mark.parametrize("seed", range(25))
def test_invariants_sequences_aleatoires(seed):
    rng = random.Random(seed)
    max_capacity = rng.randint(0, 30)
    reserved_capacity = rng.randint(0, max_capacity)
    min_spaces_left = rng.randint(0, max_capacity - reserved_capacity)
    p = CarPark(max_capacity, reserved_capacity, min_spaces_left)
    voitures = list(range(rng.randint(1, 2 * max_capacity + 2)))

    for _ in range(300):
        _operation_aleatoire(p, rng, voitures)
        p.check_invariants()
        assert p.check_availability() >= 0
