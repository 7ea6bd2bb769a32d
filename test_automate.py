import pytest

from automate_base import Automate, Etat
from car_park import CarPark, EVT_FERMER_PARKING, EVT_OUVRIR_ZONE_RESERVEE


def _automate_simple():
    a = Automate()
    a.ajouter_etat(Etat(0, "A", "initial"))
    a.ajouter_etat(Etat(1, "B"))
    a.ajouter_transition(0, 1, "aller")
    a.ajouter_transition(1, 0, "retour")
    return a


def test_etat_initial():
    a = _automate_simple()
    assert a.etat_courant.label_etat == "A"
    assert a.etat_initial is a.list_etats[0]
    assert a.historique == ["A"]


def test_transition_valide():
    a = _automate_simple()
    assert a.transition("aller") is True
    assert a.etat_courant.label_etat == "B"
    assert a.historique == ["A", "B"]


def test_transition_impossible(capsys):
    a = _automate_simple()
    assert a.transition("retour") is False
    assert a.etat_courant.label_etat == "A"
    assert "[Bloqué]" in capsys.readouterr().out


def test_transition_sans_etat_initial():
    a = Automate()
    a.ajouter_etat(Etat(0, "A"))
    assert a.transition("aller") is False


def test_evenements_possibles():
    a = _automate_simple()
    assert a.evenements_possibles() == ["aller"]
    assert Automate().evenements_possibles() == []


def test_reinitialiser():
    a = _automate_simple()
    a.transition("aller")
    a.reinitialiser()
    assert a.etat_courant.label_etat == "A"
    assert a.historique == ["A"]


def test_etat_duplique():
    a = _automate_simple()
    with pytest.raises(ValueError):
        a.ajouter_etat(Etat(1, "C"))


def test_second_etat_initial():
    a = _automate_simple()
    with pytest.raises(ValueError):
        a.ajouter_etat(Etat(2, "C", "initial"))


def test_transition_vers_etat_inconnu():
    a = _automate_simple()
    with pytest.raises(ValueError):
        a.ajouter_transition(0, 99, "nulle_part")


def test_type_etat_inconnu():
    with pytest.raises(ValueError):
        Etat(0, "A", "puits")


def test_automate_des_modes():
    p = CarPark()
    a = p.automate
    assert sorted(e.label_etat for e in a.list_etats.values()) == ["SEMAINE", "WEEKEND"]
    assert a.evenements_possibles() == [EVT_FERMER_PARKING, EVT_OUVRIR_ZONE_RESERVEE]
    assert len(a.list_transitions) == 4


def test_historique_des_modes():
    p = CarPark()
    p.open_reserved_area()
    p.open_reserved_area()
    p.close_car_park()
    assert p.automate.historique == ["SEMAINE", "WEEKEND", "WEEKEND", "SEMAINE"]
