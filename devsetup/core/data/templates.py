"""
Literal file payloads written by the provisioner.

Every payload is a fixed string: the same bytes are written on every
run, and a file that exists is overwritten rather than merged.
"""

from __future__ import annotations

# ── Shell ───────────────────────────────────────────────────────

ZSHRC = r"""export ZSH="$HOME/.oh-my-zsh"

ZSH_THEME="robbyrussell"

plugins=(
    git
    docker
    docker-compose
    npm
    node
    nvm
    zsh-autosuggestions
    zsh-syntax-highlighting
    zsh-completions
)

source $ZSH/oh-my-zsh.sh

# NVM configuration
export NVM_DIR="$HOME/.nvm"
[ -s "$NVM_DIR/nvm.sh" ] && \. "$NVM_DIR/nvm.sh"
[ -s "$NVM_DIR/bash_completion" ] && \. "$NVM_DIR/bash_completion"

# User configuration
export EDITOR='nvim'
export VISUAL='nvim'

# Aliases
alias vim='nvim'
alias vi='nvim'
alias ll='exa -la'
alias ls='exa'
alias cat='batcat'
alias find='fd'
alias grep='rg'

# Add local bin to PATH
export PATH="$HOME/.local/bin:$PATH"

# Auto-load .nvmrc files
autoload -U add-zsh-hook
load-nvmrc() {
  local nvmrc_path="$(nvm_find_nvmrc)"
  if [ -n "$nvmrc_path" ]; then
    local nvmrc_node_version=$(nvm version "$(cat "${nvmrc_path}")")
    if [ "$nvmrc_node_version" = "N/A" ]; then
      nvm install
    elif [ "$nvmrc_node_version" != "$(nvm version)" ]; then
      nvm use
    fi
  elif [ -n "$(PWD=$OLDPWD nvm_find_nvmrc)" ] && [ "$(nvm version)" != "$(nvm version default)" ]; then
    echo "Reverting to nvm default version"
    nvm use default
  fi
}
add-zsh-hook chpwd load-nvmrc
load-nvmrc
"""

# ── Neovim (LazyVim plugin specs) ───────────────────────────────

TYPESCRIPT_LUA = """return {
  -- TypeScript support
  {
    "neovim/nvim-lspconfig",
    opts = {
      servers = {
        ts_ls = {},
        eslint = {},
      },
    },
  },
  
  -- Better TypeScript experience
  {
    "pmizio/typescript-tools.nvim",
    dependencies = { "nvim-lua/plenary.nvim", "neovim/nvim-lspconfig" },
    opts = {},
  },

  -- Formatting and linting
  {
    "nvimtools/none-ls.nvim",
    opts = function(_, opts)
      local nls = require("null-ls")
      opts.sources = opts.sources or {}
      table.insert(opts.sources, nls.builtins.formatting.prettier)
      table.insert(opts.sources, nls.builtins.diagnostics.eslint_d)
      table.insert(opts.sources, nls.builtins.code_actions.eslint_d)
    end,
  },

  -- Package.json support
  {
    "vuki656/package-info.nvim",
    dependencies = "MunifTanjim/nui.nvim",
    config = true,
    ft = "json",
  },
}
"""

EXTRAS_LUA = """return {
  -- File explorer enhancement
  {
    "nvim-neo-tree/neo-tree.nvim",
    opts = {
      filesystem = {
        filtered_items = {
          hide_dotfiles = false,
          hide_gitignored = false,
        },
      },
    },
  },

  -- Git integration
  {
    "lewis6991/gitsigns.nvim",
    opts = {
      current_line_blame = true,
    },
  },

  -- Better terminal
  {
    "akinsho/toggleterm.nvim",
    config = true,
    keys = {
      { "<leader>tt", "<cmd>ToggleTerm<cr>", desc = "Toggle Terminal" },
    },
  },

  -- Markdown preview
  {
    "iamcco/markdown-preview.nvim",
    build = "cd app && npm install",
    ft = "markdown",
    keys = {
      { "<leader>mp", "<cmd>MarkdownPreview<cr>", desc = "Markdown Preview" },
    },
  },

  -- REST client
  {
    "rest-nvim/rest.nvim",
    dependencies = { "nvim-lua/plenary.nvim" },
    ft = "http",
    keys = {
      { "<leader>rr", "<cmd>Rest run<cr>", desc = "Run REST request" },
    },
  },

  -- Auto-detect project root
  {
    "ahmedkhalf/project.nvim",
    config = function()
      require("project_nvim").setup({
        detection_methods = { "pattern" },
        patterns = { ".git", "package.json", "tsconfig.json", ".nvmrc" },
      })
    end,
  },
}
"""

# relative path under the Neovim config dir → payload
NEOVIM_PLUGIN_FILES: dict[str, str] = {
    "lua/plugins/typescript.lua": TYPESCRIPT_LUA,
    "lua/plugins/extras.lua": EXTRAS_LUA,
}

# ── Sample TypeScript project ───────────────────────────────────

NVMRC = "lts/*\n"

PACKAGE_JSON = r"""{
  "name": "typescript-starter",
  "version": "1.0.0",
  "description": "A TypeScript starter project with modern tooling",
  "main": "dist/index.js",
  "scripts": {
    "start": "node dist/index.js",
    "dev": "nodemon src/index.ts",
    "build": "tsc",
    "clean": "rm -rf dist",
    "lint": "eslint src/**/*.ts",
    "lint:fix": "eslint src/**/*.ts --fix",
    "format": "prettier --write src/**/*.ts",
    "type-check": "tsc --noEmit",
    "test": "echo \"Add your test command here\" && exit 0"
  },
  "keywords": ["typescript", "nodejs", "starter"],
  "author": "",
  "license": "MIT",
  "devDependencies": {
    "@types/node": "^20.0.0",
    "@typescript-eslint/eslint-plugin": "^6.0.0",
    "@typescript-eslint/parser": "^6.0.0",
    "eslint": "^8.0.0",
    "nodemon": "^3.0.0",
    "prettier": "^3.0.0",
    "ts-node": "^10.0.0",
    "typescript": "^5.0.0"
  },
  "engines": {
    "node": ">=18.0.0"
  }
}
"""

TSCONFIG_JSON = """{
  "compilerOptions": {
    "target": "ES2022",
    "module": "commonjs",
    "lib": ["ES2022"],
    "outDir": "./dist",
    "rootDir": "./src",
    "strict": true,
    "esModuleInterop": true,
    "skipLibCheck": true,
    "forceConsistentCasingInFileNames": true,
    "resolveJsonModule": true,
    "declaration": true,
    "declarationMap": true,
    "sourceMap": true,
    "removeComments": true,
    "noUnusedLocals": true,
    "noUnusedParameters": true,
    "exactOptionalPropertyTypes": true,
    "noImplicitReturns": true,
    "noFallthroughCasesInSwitch": true,
    "moduleResolution": "node",
    "allowSyntheticDefaultImports": true
  },
  "include": ["src/**/*"],
  "exclude": ["node_modules", "dist", "**/*.test.ts"]
}
"""

ESLINTRC_JSON = """{
  "parser": "@typescript-eslint/parser",
  "plugins": ["@typescript-eslint"],
  "extends": [
    "eslint:recommended",
    "@typescript-eslint/recommended"
  ],
  "parserOptions": {
    "ecmaVersion": 2022,
    "sourceType": "module"
  },
  "rules": {
    "@typescript-eslint/no-unused-vars": "error",
    "@typescript-eslint/explicit-function-return-type": "warn"
  }
}
"""

PRETTIERRC = """{
  "semi": true,
  "trailingComma": "es5",
  "singleQuote": true,
  "printWidth": 80,
  "tabWidth": 2
}
"""

GITIGNORE = """# Dependencies
node_modules/
npm-debug.log*
yarn-debug.log*
yarn-error.log*

# Runtime data
pids
*.pid
*.seed
*.pid.lock

# Coverage directory used by tools like istanbul
coverage/

# Build outputs
dist/
build/

# Environment variables
.env
.env.local
.env.development.local
.env.test.local
.env.production.local

# Editor directories and files
.vscode/
.idea/
*.swp
*.swo
*~

# OS generated files
.DS_Store
.DS_Store?
._*
.Spotlight-V100
.Trashes
ehthumbs.db
Thumbs.db
"""

INDEX_TS = """interface User {
  readonly id: number;
  name: string;
  email: string;
}

class UserService {
  private users: User[] = [];
  private nextId = 1;

  public addUser(data: Omit<User, 'id'>): User {
    const user: User = { id: this.nextId++, ...data };
    this.users.push(user);
    return user;
  }

  public getAllUsers(): readonly User[] {
    return [...this.users];
  }
}

function main(): void {
  console.log('TypeScript development environment ready');
  console.log(`Node.js version: ${process.version}`);

  const users = new UserService();
  users.addUser({ name: 'Jane Smith', email: 'jane@example.com' });
  console.log(users.getAllUsers());
}

main();
"""

README_MD = """# TypeScript Starter Project

A modern TypeScript development setup with all the essentials.

## Getting Started

```bash
npm install
npm run dev
```

## Node.js Version

This project uses the LTS version of Node.js specified in `.nvmrc`. When you
navigate to this directory, NVM will automatically switch to the correct version.

## Scripts

- `npm run dev` - Start development server with hot reload
- `npm run build` - Build for production
- `npm run start` - Run production build
- `npm run lint` - Check code with ESLint
- `npm run lint:fix` - Fix ESLint issues automatically
- `npm run format` - Format code with Prettier
- `npm run type-check` - Check TypeScript types without building
"""

# relative path under the project dir → payload, in write order
PROJECT_FILES: dict[str, str] = {
    ".nvmrc": NVMRC,
    "package.json": PACKAGE_JSON,
    "tsconfig.json": TSCONFIG_JSON,
    ".eslintrc.json": ESLINTRC_JSON,
    ".prettierrc": PRETTIERRC,
    ".gitignore": GITIGNORE,
    "src/index.ts": INDEX_TS,
    "README.md": README_MD,
}

# ── Summary ─────────────────────────────────────────────────────

INSTALLED_ITEMS: tuple[str, ...] = (
    "Latest Neovim with LazyVim (TypeScript configured)",
    "Oh My Zsh with useful plugins",
    "NVM (Node Version Manager) with Node.js LTS",
    "TypeScript development tools",
    "Docker and Docker Compose",
    "GitHub CLI (gh)",
    "LazyGit",
    "Starship prompt",
    "Developer tools: ripgrep, fd, fzf, bat, exa, htop, tree",
)

NVM_COMMANDS: tuple[tuple[str, str], ...] = (
    ("nvm list", "Show installed Node.js versions"),
    ("nvm install <version>", "Install specific Node.js version"),
    ("nvm use <version>", "Switch to specific Node.js version"),
    ("nvm current", "Show current Node.js version"),
)

ALIASES: tuple[tuple[str, str], ...] = (
    ("vim/vi", "nvim"),
    ("ll", "exa -la"),
    ("ls", "exa"),
    ("cat", "batcat"),
    ("find", "fd"),
    ("grep", "rg"),
)

PROJECT_COMMANDS: tuple[tuple[str, str], ...] = (
    ("npm run dev", "Start development server"),
    ("npm run build", "Build the project"),
    ("npm run lint", "Lint the code"),
    ("npm run format", "Format the code"),
)
