"""
Word cloud of (word, count) pairs, drawn with matplotlib.
"""
import math

import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from loguru import logger
from wordcloud import WordCloud

PALETTE = ("#999999", "#E69F00", "#56B4E9", "#56B4E9")


def palette_color_func(frequencies, palette=PALETTE):
    """
    Color a word by its frequency: the rarest words get the first palette
    color, the most frequent ones the last.
    """
    highest = max(frequencies.values())

    def color_func(word, *args, **kwargs):
        share = frequencies.get(word, 0) / highest
        index = min(len(palette) - 1, max(0, math.ceil(share * len(palette)) - 1))
        return palette[index]

    return color_func


def build_wordcloud(pairs, palette=PALETTE, width=800, height=600, seed=42):
    """
    Lay out the words of pairs, a list of (word, count).
    Returns None when there is nothing to draw.
    """
    frequencies = {word: int(count) for word, count in pairs}
    if not frequencies:
        logger.warning("No words available to render a word cloud.")
        return None

    cloud = WordCloud(width=width,
                      height=height,
                      background_color="white",
                      max_words=len(frequencies),
                      random_state=seed,
                      color_func=palette_color_func(frequencies, palette))
    return cloud.generate_from_frequencies(frequencies)


def render_wordcloud(pairs, output=None, title=None, palette=PALETTE):
    """
    Draw the word cloud. Saved as an image when output is given, shown otherwise.

    Args:
        pairs (list): (word, count) tuples
        output (str): Path of the image to write
        title (str): Figure title
        palette (tuple): Colors, from the rarest to the most frequent words
    """
    cloud = build_wordcloud(pairs, palette=palette)
    if cloud is None:
        return None

    ## a bare Figure saves without pyplot, whatever the backend
    if output is not None:
        fig = Figure(figsize=(10, 7.5))
        ax = fig.subplots()
    else:
        fig, ax = plt.subplots(figsize=(10, 7.5))
    ax.imshow(cloud, interpolation="bilinear")
    ax.axis("off")
    if title:
        ax.set_title(title)

    if output is not None:
        fig.savefig(output, dpi=150, bbox_inches="tight")
        logger.info(f"Word cloud saved at: {output}")
    else:
        plt.show()
        plt.close(fig)
    return cloud
