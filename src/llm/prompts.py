def _episode_extraction_prompt(show_name: str) -> str:
    """
    Returns the instructions for extracting episode content from a transcript.

    Args:
        show_name: Podcast name quoted in the instructions

    Returns:
        Prompt string
    """
    return (
        "Tu es un expert en musique électronique et en podcasts. "
        f"Analyse la transcription d'un épisode du podcast \"{show_name}\" et extrais:\n"
        "1. Tous les morceaux de musique mentionnés (titre, artiste, label, année, genre, "
        "lien vers une plateforme si mentionné)\n"
        "2. Les festivals, événements ou lieux mentionnés\n"
        "3. Les invités et leurs projets ou collectifs\n"
        "4. Les sujets principaux abordés\n"
        "5. Un titre d'épisode accrocheur en français\n"
        "6. Une description de l'épisode en 2-3 phrases\n"
        "7. Le monologue d'ouverture s'il y en a un, résumé en une phrase\n\n"
        "Réponds UNIQUEMENT avec un objet JSON de cette forme:\n"
        "{\n"
        '  "title": "Titre de l\'épisode",\n'
        '  "description": "Description en 2-3 phrases",\n'
        '  "opening_monologue": "Résumé du monologue ou null",\n'
        '  "tracks": [{"title": "", "artist": "", "label": null, "year": null, '
        '"genre": null, "link": null}],\n'
        '  "events": [{"name": "", "location": null, "type": "festival/soirée/club"}],\n'
        '  "guests": [{"name": "", "project": null, "links": []}],\n'
        '  "topics": ["sujet1", "sujet2"]\n'
        "}\n"
        "Si une information n'est pas disponible, utilise null. "
        "Garde les noms d'artistes et de morceaux exacts comme mentionnés."
    )
