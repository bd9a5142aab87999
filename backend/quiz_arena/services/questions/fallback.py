from quiz_arena.models import QuizQuestion

# Served whenever generation fails
FALLBACK_QUESTIONS = (
    QuizQuestion(
        question='Какое самое быстрое животное на Земле?',
        options=('Гепард', 'Сокол-сапсан', 'Антилопа', 'Страус'),
        correct_answer='Сокол-сапсан',
    ),
    QuizQuestion(
        question='Как называется столица Австралии?',
        options=('Сидней', 'Мельбурн', 'Канберра', 'Перт'),
        correct_answer='Канберра',
    ),
    QuizQuestion(
        question="Какой химический элемент обозначается символом 'Fe'?",
        options=('Фтор', 'Фосфор', 'Железо', 'Феликс'),
        correct_answer='Железо',
    ),
    QuizQuestion(
        question='Самая высокая гора в мире?',
        options=('К2', 'Эверест', 'Килиманджаро', 'Монблан'),
        correct_answer='Эверест',
    ),
    QuizQuestion(
        question="Кто написал 'Войну и мир'?",
        options=('Фёдор Достоевский', 'Лев Толстой', 'Антон Чехов', 'Иван Тургенев'),
        correct_answer='Лев Толстой',
    ),
)
