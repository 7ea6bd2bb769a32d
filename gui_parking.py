import sys
import random
import time
import networkx as nx
from matplotlib.backends.backend_qt5agg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from PyQt5.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout,
                             QHBoxLayout, QGridLayout, QLabel, QPushButton,
                             QTextEdit, QFrame, QStackedWidget)
from PyQt5.QtCore import Qt, pyqtSignal, QObject, QTimer
from PyQt5.QtGui import QFont

from car_park import CarPark, PreconditionError

COLONNES_GRILLE = 5

# Codes d'affichage d'une place
PLACE_LIBRE = 1
PLACE_VISITEUR = 0
PLACE_ABONNE = 2


# --- CLASS 1 : WORKER (Logique du parking) ---
class CarParkWorker(QObject):
    log_signal = pyqtSignal(str)
    status_signal = pyqtSignal(object) # dict de CarPark.get_status()
    update_grid_signal = pyqtSignal(int, int) # index de place, code PLACE_*

    def __init__(self, max_capacity=15, reserved_capacity=5, min_spaces_left=5):
        super().__init__()
        self.system = CarPark(max_capacity, reserved_capacity, min_spaces_left)
        self.nb_general = max_capacity - reserved_capacity
        # place -> identifiant de voiture (les places réservées sont en fin de liste)
        self.occupation_map = [None] * max_capacity
        self.entry_times = [None] * max_capacity
        self._compteur = 0

    def log(self, message):
        self.log_signal.emit(message)
        print(message)

    def _nouvelle_plaque(self):
        self._compteur += 1
        return f"AB-{self._compteur:03d}"

    def _places_candidates(self, zone_reservee):
        """Indices de grille où garer une voiture selon la zone et le mode."""
        general = range(self.nb_general)
        reservee = range(self.nb_general, len(self.occupation_map))
        if zone_reservee:
            return list(reservee)
        if self.system.reserved_open:
            return list(general) + list(reservee)
        return list(general)

    def _garer(self, car, zone_reservee):
        if car in self.occupation_map:
            return
        for idx in self._places_candidates(zone_reservee):
            if self.occupation_map[idx] is None:
                self.occupation_map[idx] = car
                self.entry_times[idx] = time.time()
                code = PLACE_ABONNE if car in self.system.subscribed else PLACE_VISITEUR
                self.update_grid_signal.emit(idx, code)
                return

    def entree_visiteur(self):
        car = self._nouvelle_plaque()
        if self.system.enter_car_park(car):
            self._garer(car, zone_reservee=False)
            self.log(f"--- 🚗 Entrée visiteur {car} ---")
        else:
            self.log(f"[Refus] {car}: zone générale complète.")
        self.update_status()

    def entree_abonne(self):
        """Fait entrer un abonné absent, ou abonne une nouvelle voiture."""
        absents = sorted(self.system.subscribed - self.system.park)
        if absents:
            car = absents[0]
        else:
            car = self._nouvelle_plaque()
            if not self.system.make_subscription(car):
                self.log(f"[Refus] {car}: plus d'abonnement disponible.")
                self.update_status()
                return

        try:
            admis = self.system.enter_reserved_car_park(car)
        except PreconditionError as exc:
            self.log(f"[Erreur] {exc}")
            return

        if admis:
            self._garer(car, zone_reservee=not self.system.reserved_open)
            self.log(f"--- 👑 Entrée abonné {car} ---")
        else:
            self.log(f"[Refus] {car}: parking complet.")
        self.update_status()

    def nouvel_abonnement(self):
        car = self._nouvelle_plaque()
        if self.system.make_subscription(car):
            self.log(f"--- 💳 Abonnement {car} ---")
        else:
            self.log(f"[Refus] {car}: plus d'abonnement disponible.")
        self.update_status()

    def sortie_auto(self):
        indices_occupes = [i for i, x in enumerate(self.occupation_map) if x is not None]
        if not indices_occupes:
            self.log("[Erreur] Le parking est vide !")
            return

        idx = random.choice(indices_occupes)
        car = self.occupation_map[idx]
        duree = int(time.time() - self.entry_times[idx])
        self.system.leave_car_park(car)
        self._liberer(idx)
        self.log(f"--- 🛑 Sortie {car} (P-{idx+1}). Durée: {duree}s ---")
        self.update_status()

    def _liberer(self, idx):
        self.occupation_map[idx] = None
        self.entry_times[idx] = None
        self.update_grid_signal.emit(idx, PLACE_LIBRE)

    def ouvrir_weekend(self):
        self.system.open_reserved_area()
        self.log("--- 🌞 Zone réservée ouverte à tous ---")
        self.update_status()

    def fermer_parking(self):
        self.system.close_car_park()
        for idx, car in enumerate(self.occupation_map):
            if car is not None:
                self._liberer(idx)
        self.log("--- 🌙 Fermeture : parking évacué ---")
        self.update_status()

    def update_status(self):
        status = self.system.get_status()
        status["history"] = list(self.system.automate.historique)
        self.status_signal.emit(status)


# --- CLASS 2 : WIDGET GRAPHE (Automate des modes) ---
class GraphWidget(QWidget):
    def __init__(self, automate):
        super().__init__()
        self.automate = automate

        layout = QVBoxLayout()
        self.setLayout(layout)
        layout.setContentsMargins(0, 0, 0, 0)

        self.figure = Figure(facecolor='#2b2b2b')
        self.canvas = FigureCanvas(self.figure)
        layout.addWidget(self.canvas)

        self.G = nx.DiGraph()
        self.pos = {"SEMAINE": (0.0, 0.0), "WEEKEND": (6.0, 0.0)}
        self.state_info = {
            "SEMAINE": "Zone réservée aux abonnés, places réservées hors quota général.",
            "WEEKEND": "Zone réservée ouverte à tous, un seul pool de places.",
        }

        self._construire_structure()
        self.draw_graph(self.automate.etat_courant.label_etat)

    def _construire_structure(self):
        for etat in self.automate.list_etats.values():
            self.G.add_node(etat.label_etat)
        for t in self.automate.list_transitions:
            lbl = t.etiquette.replace("_", " ")
            self.G.add_edge(t.etat_source.label_etat, t.etat_dest.label_etat, label=lbl)

    def draw_graph(self, current_label, history=()):
        self.figure.clear()
        ax = self.figure.add_subplot(111)
        ax.set_facecolor('#2b2b2b')

        node_colors = ['#e74c3c' if n == current_label else '#eeeeee' for n in self.G.nodes()]
        nx.draw_networkx_nodes(self.G, self.pos, ax=ax, node_color=node_colors,
                               edgecolors='#bdc3c7', linewidths=3, node_size=6000)
        nx.draw_networkx_labels(self.G, self.pos, ax=ax, font_size=10, font_weight="bold")

        hist_edges = {(history[i], history[i + 1]) for i in range(len(history) - 1)}
        boucles = [(u, v) for u, v in self.G.edges() if u == v]
        arcs = [(u, v) for u, v in self.G.edges() if u != v]

        nx.draw_networkx_edges(self.G, self.pos, ax=ax, edgelist=arcs,
                               edge_color='#ecf0f1', arrows=True, arrowsize=25, width=2.0,
                               connectionstyle='arc3,rad=0.25', node_size=6000)
        if hist_edges & set(arcs):
            nx.draw_networkx_edges(self.G, self.pos, ax=ax, edgelist=list(hist_edges & set(arcs)),
                                   edge_color='#3498db', style='dashed', arrows=True,
                                   arrowsize=25, width=2.5, connectionstyle='arc3,rad=0.25',
                                   node_size=6000)

        # Étiquettes placées à la main : les arcs sont courbes et les boucles
        # ne sont pas gérées par draw_networkx_edge_labels
        for u, v in arcs:
            (x1, y1), (x2, y2) = self.pos[u], self.pos[v]
            decalage = 0.9 if x1 < x2 else -0.9
            ax.text((x1 + x2) / 2, (y1 + y2) / 2 - decalage, self.G.edges[u, v]["label"],
                    color='#f39c12', fontsize=8, ha='center')
        for u, _ in boucles:
            x, y = self.pos[u]
            couleur = '#3498db' if (u, u) in hist_edges else '#f39c12'
            ax.text(x, y + 1.4, f"↻ {self.G.edges[u, u]['label']}",
                    color=couleur, fontsize=8, ha='center')

        info = self.state_info.get(current_label, "")
        ax.set_title(f"MODE : {current_label}", color="white", fontsize=14, fontweight='bold')
        ax.text(3, -2.5, info, color='white', fontsize=9, ha='center')
        ax.set_xlim(-2, 8)
        ax.set_ylim(-3, 3)
        ax.axis('off')

        legend_elements = [
            Line2D([0], [0], marker='o', color='w', label='Actif', markerfacecolor='#e74c3c', markersize=10),
            Line2D([0], [0], color='#3498db', lw=2, linestyle='--', label='Historique'),
            Line2D([0], [0], color='#ecf0f1', lw=2, label='Transition Possible'),
        ]
        ax.legend(handles=legend_elements, loc='lower right', facecolor='#2b2b2b',
                  edgecolor='white', labelcolor='white')
        self.canvas.draw()


# --- CLASS 3 : DASHBOARD ---
class CarParkDashboard(QMainWindow):
    STYLE_LIBRE = "background-color: #10b981; color: white; border-radius: 8px; border: 2px solid #059669;"
    STYLE_VISITEUR = "background-color: #f43f5e; color: white; border-radius: 8px; border: 2px solid #e11d48;"
    STYLE_ABONNE = "background-color: #8b5cf6; color: white; border-radius: 8px; border: 2px solid #7c3aed;"
    STYLE_RESERVEE = "background-color: #334155; color: #c4b5fd; border-radius: 8px; border: 2px dashed #8b5cf6;"

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Parking - Zone Générale / Zone Abonnés")
        self.setGeometry(100, 100, 1200, 800)
        self.simulation_start = time.time()

        self.setStyleSheet("""
            QMainWindow { background-color: #0f172a; }
            QLabel { color: white; font-family: 'Segoe UI', sans-serif; }
            QPushButton {
                background-color: #334155; color: white; border: none;
                padding: 10px; border-radius: 8px; font-weight: bold; font-size: 13px;
            }
            QPushButton:hover { background-color: #475569; }
        """)

        self.worker = CarParkWorker()
        self.worker.log_signal.connect(self.append_log)
        self.worker.status_signal.connect(self.update_dashboard)
        self.worker.update_grid_signal.connect(self.update_place)
        self.reserved_open = False

        self.init_ui()
        self.worker.update_status()

        self.timer_clock = QTimer(self)
        self.timer_clock.timeout.connect(self.update_clocks)
        self.timer_clock.start(1000)

    def init_ui(self):
        main = QWidget()
        self.setCentralWidget(main)
        layout = QVBoxLayout(main)
        layout.setSpacing(20)
        layout.setContentsMargins(20, 20, 20, 20)

        header_top = QHBoxLayout()
        self.lbl_sim_time = QLabel("⏱ SESSION: 00:00")
        self.lbl_sim_time.setFont(QFont("Segoe UI", 12, QFont.Bold))
        self.lbl_sim_time.setStyleSheet("color: #3b82f6; background-color: #1e293b; padding: 5px 10px; border-radius: 5px;")
        header_top.addStretch()
        header_top.addWidget(self.lbl_sim_time)
        layout.addLayout(header_top)

        # KPI
        kpi_layout = QHBoxLayout()
        kpi_layout.setSpacing(15)
        self.card_dispo = self.create_kpi_card("PLACES DISPONIBLES", "0", "#10b981")
        self.card_general = self.create_kpi_card("ZONE GÉNÉRALE", "0", "#3b82f6")
        self.card_sub = self.create_kpi_card("ABONNÉS", "0", "#8b5cf6")
        self.lbl_mode = QLabel("SEMAINE")
        self.lbl_mode.setFont(QFont("Segoe UI", 14, QFont.Bold))
        for card in (self.card_dispo, self.card_general, self.card_sub):
            kpi_layout.addWidget(card)
        kpi_layout.addStretch()
        l_mode = QLabel("MODE :")
        l_mode.setStyleSheet("color: #94a3b8; font-weight: bold;")
        kpi_layout.addWidget(l_mode)
        kpi_layout.addWidget(self.lbl_mode)
        layout.addLayout(kpi_layout)

        # Grille : zone générale puis zone réservée
        grid_frame = QFrame()
        grid_frame.setStyleSheet("background-color: #1e293b; border-radius: 12px;")
        grid_layout = QGridLayout(grid_frame)
        grid_layout.setSpacing(15)
        self.places_widgets = []
        for i in range(len(self.worker.occupation_map)):
            lbl = QLabel()
            lbl.setAlignment(Qt.AlignCenter)
            lbl.setFixedSize(110, 70)
            lbl.setFont(QFont("Segoe UI", 10, QFont.Bold))
            grid_layout.addWidget(lbl, i // COLONNES_GRILLE, i % COLONNES_GRILLE)
            self.places_widgets.append(lbl)
            self.update_place(i, PLACE_LIBRE)
        layout.addWidget(grid_frame)

        # Commandes et console / graphe
        bottom = QHBoxLayout()
        btns = QVBoxLayout()
        btns.setSpacing(10)
        actions = [
            ("🎫  Ticket Visiteur", self.worker.entree_visiteur),
            ("💳  Badge Abonné", self.worker.entree_abonne),
            ("📝  Nouvel Abonnement", self.worker.nouvel_abonnement),
            ("🛑  Sortie Aléatoire", self.worker.sortie_auto),
            ("🌞  Ouvrir Zone Réservée", self.worker.ouvrir_weekend),
            ("🌙  Fermer le Parking", self.worker.fermer_parking),
            ("🔄  Vue Console / Graphe", self.toggle_view),
        ]
        for texte, slot in actions:
            b = QPushButton(texte)
            b.clicked.connect(slot)
            btns.addWidget(b)
        btns.addStretch()

        self.stack = QStackedWidget()
        self.logs = QTextEdit()
        self.logs.setReadOnly(True)
        self.logs.setStyleSheet("""
            QTextEdit {
                background-color: rgba(30, 41, 59, 0.7); color: #10b981;
                font-family: 'Consolas', monospace; font-size: 13px;
                border: 1px solid #475569; border-radius: 8px; padding: 10px;
            }
        """)
        self.graph_widget = GraphWidget(self.worker.system.automate)
        self.stack.addWidget(self.logs)
        self.stack.addWidget(self.graph_widget)

        bottom.addLayout(btns, 1)
        bottom.addWidget(self.stack, 3)
        layout.addLayout(bottom, 1)

    def create_kpi_card(self, title, value, base_color):
        frame = QFrame()
        frame.setStyleSheet(f"""
            .QFrame {{
                background-color: qlineargradient(x1:0, y1:0, x2:0, y2:1, stop:0 {base_color}, stop:1 #1e293b);
                border-radius: 10px; border: 1px solid {base_color};
            }}
            QLabel {{ border: none; background: transparent; }}
        """)
        frame.setFixedSize(180, 85)
        vbox = QVBoxLayout(frame)
        vbox.setContentsMargins(15, 10, 15, 10)

        l_title = QLabel(title)
        l_title.setFont(QFont("Segoe UI", 9, QFont.Bold))
        l_val = QLabel(value)
        l_val.setFont(QFont("Segoe UI", 18, QFont.Bold))
        vbox.addWidget(l_title)
        vbox.addWidget(l_val)
        return frame

    def toggle_view(self):
        self.stack.setCurrentIndex(1 - self.stack.currentIndex())

    def update_dashboard(self, stats):
        self.card_dispo.findChildren(QLabel)[1].setText(str(stats["disponibles"]))
        self.card_general.findChildren(QLabel)[1].setText(str(stats["general"]))
        self.card_sub.findChildren(QLabel)[1].setText(
            f"{stats['abonnes']}/{stats['reserved_capacity']}")

        self.reserved_open = stats["reserved_open"]
        couleur = "#f59e0b" if self.reserved_open else "#10b981"
        self.lbl_mode.setText(stats["etat_mode"])
        self.lbl_mode.setStyleSheet(f"background-color: {couleur}; padding: 8px 16px; border-radius: 6px;")

        # Les places réservées libres changent d'aspect selon le mode
        for idx in range(self.worker.nb_general, len(self.places_widgets)):
            if self.worker.occupation_map[idx] is None:
                self.update_place(idx, PLACE_LIBRE)

        self.graph_widget.draw_graph(stats["etat_mode"], stats.get("history", []))

    def append_log(self, text):
        self.logs.append(text)
        self.logs.verticalScrollBar().setValue(self.logs.verticalScrollBar().maximum())

    def update_place(self, idx, status):
        l = self.places_widgets[idx]
        reservee = idx >= self.worker.nb_general
        nom = f"{'R' if reservee else 'P'}-{idx+1}"

        if status == PLACE_LIBRE:
            if reservee and not self.reserved_open:
                l.setStyleSheet(self.STYLE_RESERVEE)
                l.setText(f"{nom}\nABONNÉS")
            else:
                l.setStyleSheet(self.STYLE_LIBRE)
                l.setText(f"{nom}\nLIBRE")
        elif status == PLACE_ABONNE:
            l.setStyleSheet(self.STYLE_ABONNE)
            l.setText(f"{nom}\n{self.worker.occupation_map[idx]}")
        else:
            l.setStyleSheet(self.STYLE_VISITEUR)
            l.setText(f"{nom}\n{self.worker.occupation_map[idx]}")

    def update_clocks(self):
        elapsed = time.time() - self.simulation_start
        m, s = divmod(int(elapsed), 60)
        self.lbl_sim_time.setText(f"⏱ SESSION: {m:02d}:{s:02d}")

        now = time.time()
        for idx, car in enumerate(self.worker.occupation_map):
            entry = self.worker.entry_times[idx]
            if car is None or entry is None:
                continue
            mm, ss = divmod(int(now - entry), 60)
            hh, mm = divmod(mm, 60)
            icon = "👑" if car in self.worker.system.subscribed else "🚗"
            self.places_widgets[idx].setText(f"{car} | {icon}\n{hh:02d}:{mm:02d}:{ss:02d}")


if __name__ == "__main__":
    app = QApplication(sys.argv)
    window = CarParkDashboard()
    window.show()
    sys.exit(app.exec_())
