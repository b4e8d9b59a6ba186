# src/halisaha/charts.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

COLOR_BOOKED = '#2E7D32'
COLOR_EMPTY = '#CFD8DC'


def create_pie_chart(values: list[int], labels: list[str], filename: str, colors: list[str] = None, subtitle: str = None):
    """
    Erstellt ein Tortendiagramm und speichert es als PNG.
    :param values: Liste der Werte (z.B. [Dolu, Boş]).
    :param labels: Zugehörige Labels.
    :param filename: Pfad zur Ausgabedatei.
    :param colors: (Optional) Farben der Segmente.
    :param subtitle: (Optional) Text unter dem Diagramm.
    """
    fig, ax = plt.subplots()
    if sum(values) == 0:
        # Platzhalter statt leerer Torte
        ax.text(0.5, 0.5, "Veri yok", ha="center", va="center", fontsize=14)
        ax.axis("off")
    else:
        ax.pie(values, labels=labels, autopct="%1.1f%%", colors=colors)
        ax.axis("equal")
    if subtitle:
        fig.text(0.5, 0.02, subtitle, ha="center", va="bottom", fontsize=16, fontweight='bold')
    fig.savefig(filename, bbox_inches="tight")
    plt.close(fig)
    return filename


def create_occupancy_chart(occupancy: dict, filename: str, subtitle: str = "Saha Kullanımı"):
    """Dolu/Boş-Verteilung eines Tages (Ergebnis von statistics.daily_occupancy)."""
    return create_pie_chart(
        [occupancy['booked'], occupancy['empty']],
        ['Dolu', 'Boş'],
        filename,
        colors=[COLOR_BOOKED, COLOR_EMPTY],
        subtitle=subtitle,
    )
