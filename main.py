# main.py
from car_park import CarPark


def main():
    parking = CarPark(max_capacity=15, reserved_capacity=5, min_spaces_left=5)

    # Semaine : 5 places en zone générale
    for car in range(1, 6):
        parking.enter_car_park(car)
    parking.enter_car_park(6) # Refus, zone générale complète
    parking.afficher_etat()

    # Abonnés
    parking.make_subscription(6)
    parking.make_subscription(7)
    parking.enter_reserved_car_park(6)
    parking.leave_car_park(1)
    parking.enter_car_park(8) # Place libérée
    parking.afficher_etat()

    # Weekend
    parking.open_reserved_area()
    parking.enter_car_park(9)
    parking.enter_reserved_car_park(10) # Non abonné, accepté le weekend
    parking.afficher_etat()

    # Fin de journée
    parking.close_car_park()
    parking.afficher_etat()


if __name__ == "__main__":
    main()
